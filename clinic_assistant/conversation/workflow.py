"""
Workflow engine: the step-indexed dialog controller.

Handles the main menu, free questions, the authorization prompt, and the
five-step booking wizard (specialty -> provider -> slot -> patient data
-> confirmation). The engine never mutates the session it is given: it
returns the reply and the next dialog state, and the orchestrator
persists both.

Usage:
    engine = WorkflowEngine(scheduler, responder)
    result = engine.handle(session, "2")
    assert isinstance(result.state, SpecialtyStep)
"""

from dataclasses import dataclass
from typing import Optional

from clinic_assistant.config import SessionConfig, settings
from clinic_assistant.conversation.patient_data import PatientDataError, parse_patient_data
from clinic_assistant.conversation.reconstructor import content_turns, reconstruct_step
from clinic_assistant.conversation.state_machine import (
    DialogStateMachine,
    InvalidTransitionError,
    TransitionTrigger,
)
from clinic_assistant.logging_context import get_session_logger
from clinic_assistant.prompts import messages
from clinic_assistant.schemas.catalog_schema import AuthorizationOutcome
from clinic_assistant.schemas.conversation_schema import Channel, Session
from clinic_assistant.schemas.dialog_schema import (
    AuthorizationState,
    ConfirmStep,
    DialogState,
    DialogStep,
    FreeQAState,
    MenuState,
    PatientDataStep,
    ProviderStep,
    SlotStep,
    SpecialtyStep,
    wizard_fields,
)
from clinic_assistant.schemas.scheduling_schema import Slot
from clinic_assistant.tools.errors import CollaboratorError
from clinic_assistant.tools.responder import Responder
from clinic_assistant.tools.scheduling import Scheduler
from clinic_assistant.utils import parse_menu_index

logger = get_session_logger(__name__)

CONFIRM_KEYWORD = "CONFIRM"
CANCEL_KEYWORD = "CANCEL"

MENU_OPTIONS = (
    TransitionTrigger.SELECT_QUESTIONS,
    TransitionTrigger.SELECT_BOOKING,
    TransitionTrigger.SELECT_AUTHORIZATION,
)

# Steps a legacy transcript can resume without wizard context
_CONTEXT_FREE_STEPS = {
    DialogStep.MENU: MenuState,
    DialogStep.FREE_QA: FreeQAState,
    DialogStep.AUTHORIZATION: AuthorizationState,
    DialogStep.SPECIALTY: SpecialtyStep,
}


@dataclass(frozen=True)
class StepResult:
    """Outcome of one turn: the reply, the next state, and how to tag both turns."""

    reply: str
    state: DialogState
    trigger: TransitionTrigger
    channel: Channel = Channel.CHROME
    inbound_channel: Channel = Channel.CHROME

    @property
    def step(self) -> DialogStep:
        return self.state.step


class WorkflowEngine:
    """
    Dialog controller for one inbound turn.

    Validation failures self-loop with a corrective prompt. Collaborator
    failures become an apology plus the main menu, discarding any
    in-progress booking.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        responder: Responder,
        config: Optional[SessionConfig] = None,
    ) -> None:
        self._scheduler = scheduler
        self._responder = responder
        self._config = config or settings.session

    # ------------------------------------------------------------------
    # State resolution
    # ------------------------------------------------------------------

    def resolve_state(self, session: Session) -> tuple[DialogState, bool]:
        """Return the session's current dialog state and whether it was an anomaly.

        Legacy sessions carry no state, so the step is reconstructed from
        the transcript. A reconstructed wizard step past the specialty list
        cannot be resumed because its collected fields were never stored.
        """
        if session.state is not None:
            return session.state, False
        step = reconstruct_step(session.turns, self._config.reconstruction_window)
        state_cls = _CONTEXT_FREE_STEPS.get(step)
        if state_cls is None:
            logger.warning(
                "Legacy transcript at step '%s' has no wizard context, falling back to menu",
                step.value,
            )
            return MenuState(), True
        return state_cls(), False

    def current_state(self, session: Session) -> DialogState:
        return self.resolve_state(session)[0]

    def is_reset(self, text: str) -> bool:
        return text.strip() == self._config.reset_token

    # ------------------------------------------------------------------
    # Turn handling
    # ------------------------------------------------------------------

    def handle(self, session: Session, text: str) -> StepResult:
        """Compute the reply and next state for ``text`` without mutating ``session``."""
        state, anomaly = self.resolve_state(session)
        sm = DialogStateMachine(state.step)

        if self.is_reset(text):
            logger.info("Reset from step '%s'", state.step.value)
            return self._finish(sm, TransitionTrigger.RESET, MenuState(), messages.main_menu())

        if not session.turns:
            return self._finish(
                DialogStateMachine(), TransitionTrigger.WELCOME, MenuState(), messages.main_menu()
            )

        if anomaly:
            return self._finish(sm, TransitionTrigger.ANOMALY, MenuState(), messages.main_menu())

        try:
            return self._dispatch(sm, state, session, text)
        except CollaboratorError as exc:
            logger.warning(
                "Collaborator failure at step '%s': %s", state.step.value, exc
            )
            return self.fallback(state, TransitionTrigger.COLLABORATOR_FAILED, messages.apology())
        except InvalidTransitionError:
            logger.exception("Illegal transition at step '%s'", state.step.value)
            return self.fallback(state, TransitionTrigger.ANOMALY, messages.main_menu())

    def _dispatch(
        self, sm: DialogStateMachine, state: DialogState, session: Session, text: str
    ) -> StepResult:
        if isinstance(state, MenuState):
            return self._handle_menu(sm, text)
        if isinstance(state, FreeQAState):
            return self._handle_question(sm, session, text)
        if isinstance(state, AuthorizationState):
            return self._finish(
                sm,
                TransitionTrigger.INVALID_INPUT,
                state,
                messages.authorization_missing_document(),
            )
        if isinstance(state, SpecialtyStep):
            return self._handle_specialty(sm, text)
        if isinstance(state, ProviderStep):
            return self._handle_provider(sm, state, text)
        if isinstance(state, SlotStep):
            return self._handle_slot(sm, state, text)
        if isinstance(state, PatientDataStep):
            return self._handle_patient_data(sm, state, text)
        if isinstance(state, ConfirmStep):
            return self._handle_confirm(sm, state, text)
        logger.warning("Unknown dialog state %r, falling back to menu", state)
        return self._finish(sm, TransitionTrigger.ANOMALY, MenuState(), messages.main_menu())

    def _finish(
        self,
        sm: DialogStateMachine,
        trigger: TransitionTrigger,
        state: DialogState,
        reply: str,
        channel: Channel = Channel.CHROME,
        inbound_channel: Channel = Channel.CHROME,
    ) -> StepResult:
        """Fire ``trigger`` and check that it lands on the step of ``state``."""
        step = sm.transition(trigger)
        if step != state.step:
            raise InvalidTransitionError(
                f"Trigger '{trigger.value}' leads to '{step.value}', not '{state.step.value}'"
            )
        return StepResult(
            reply=reply,
            state=state,
            trigger=trigger,
            channel=channel,
            inbound_channel=inbound_channel,
        )

    def fallback(self, state: DialogState, trigger: TransitionTrigger, reply: str) -> StepResult:
        """Leave ``state`` for the main menu through a global trigger."""
        sm = DialogStateMachine(state.step)
        return self._finish(sm, trigger, MenuState(), reply)

    # ------------------------------------------------------------------
    # Menu, questions, authorization
    # ------------------------------------------------------------------

    def _handle_menu(self, sm: DialogStateMachine, text: str) -> StepResult:
        index = parse_menu_index(text, len(MENU_OPTIONS))
        if index is None:
            return self._finish(
                sm, TransitionTrigger.INVALID_INPUT, MenuState(), messages.invalid_menu_option()
            )
        trigger = MENU_OPTIONS[index]
        if trigger == TransitionTrigger.SELECT_QUESTIONS:
            return self._finish(sm, trigger, FreeQAState(), messages.free_qa_intro())
        if trigger == TransitionTrigger.SELECT_AUTHORIZATION:
            return self._finish(sm, trigger, AuthorizationState(), messages.authorization_intro())

        specialties = self._scheduler.list_specialties()
        if not specialties:
            logger.info("No specialties available for booking")
            return self._finish(
                sm, TransitionTrigger.NO_OPTIONS, MenuState(), messages.no_specialties()
            )
        return self._finish(sm, trigger, SpecialtyStep(), messages.specialty_prompt(specialties))

    def _handle_question(self, sm: DialogStateMachine, session: Session, text: str) -> StepResult:
        question = text.strip()
        if not question:
            return self._finish(
                sm, TransitionTrigger.INVALID_INPUT, FreeQAState(), messages.free_qa_intro()
            )
        history = content_turns(session.turns)
        answer = self._responder.respond(question, history)
        return self._finish(
            sm,
            TransitionTrigger.QUESTION_ANSWERED,
            FreeQAState(),
            messages.free_qa_answer(answer),
            channel=Channel.CONTENT,
            inbound_channel=Channel.CONTENT,
        )

    def authorization_result(self, outcome: Optional[AuthorizationOutcome]) -> StepResult:
        """Reply for a processed referral; the caller stays in the authorization step."""
        sm = DialogStateMachine(DialogStep.AUTHORIZATION)
        reply = (
            messages.authorization_no_match()
            if outcome is None
            else messages.authorization_result(outcome)
        )
        return self._finish(sm, TransitionTrigger.DOCUMENT_PROCESSED, AuthorizationState(), reply)

    def authorization_unreadable(self) -> StepResult:
        sm = DialogStateMachine(DialogStep.AUTHORIZATION)
        return self._finish(
            sm,
            TransitionTrigger.DOCUMENT_PROCESSED,
            AuthorizationState(),
            messages.authorization_unreadable(),
        )

    # ------------------------------------------------------------------
    # Booking wizard
    # ------------------------------------------------------------------

    def _handle_specialty(self, sm: DialogStateMachine, text: str) -> StepResult:
        specialties = self._scheduler.list_specialties()
        if not specialties:
            return self._finish(
                sm, TransitionTrigger.NO_OPTIONS, MenuState(), messages.no_specialties()
            )
        index = parse_menu_index(text, len(specialties))
        if index is None:
            return self._finish(
                sm,
                TransitionTrigger.INVALID_INPUT,
                SpecialtyStep(),
                messages.specialty_prompt(specialties, messages.invalid_choice(len(specialties))),
            )

        specialty = specialties[index]
        providers = self._scheduler.list_providers_by_specialty(specialty)
        if not providers:
            return self._finish(
                sm,
                TransitionTrigger.CHOICE_UNAVAILABLE,
                SpecialtyStep(),
                messages.specialty_prompt(specialties, messages.no_providers_notice(specialty)),
            )
        return self._finish(
            sm,
            TransitionTrigger.SPECIALTY_CHOSEN,
            ProviderStep(specialty=specialty),
            messages.provider_prompt(specialty, providers),
        )

    def _handle_provider(self, sm: DialogStateMachine, state: ProviderStep, text: str) -> StepResult:
        providers = self._scheduler.list_providers_by_specialty(state.specialty)
        if not providers:
            return self._back_to_specialties(sm, messages.no_providers_notice(state.specialty))
        index = parse_menu_index(text, len(providers))
        if index is None:
            return self._finish(
                sm,
                TransitionTrigger.INVALID_INPUT,
                state,
                messages.provider_prompt(
                    state.specialty, providers, messages.invalid_choice(len(providers))
                ),
            )

        provider = providers[index]
        slots = self._available_slots(provider.provider_id)
        if not slots:
            return self._finish(
                sm,
                TransitionTrigger.CHOICE_UNAVAILABLE,
                state,
                messages.provider_prompt(
                    state.specialty, providers, messages.no_slots_notice(provider.name)
                ),
            )
        return self._finish(
            sm,
            TransitionTrigger.PROVIDER_CHOSEN,
            SlotStep(
                specialty=state.specialty,
                provider_id=provider.provider_id,
                provider_name=provider.name,
            ),
            messages.slot_prompt(provider.name, slots),
        )

    def _handle_slot(self, sm: DialogStateMachine, state: SlotStep, text: str) -> StepResult:
        slots = self._available_slots(state.provider_id)
        if not slots:
            providers = self._scheduler.list_providers_by_specialty(state.specialty)
            if not providers:
                logger.info("No providers left for %s", state.specialty)
                return self.fallback(
                    state, TransitionTrigger.ANOMALY, messages.no_providers_left(state.specialty)
                )
            return self._finish(
                sm,
                TransitionTrigger.NO_OPTIONS,
                ProviderStep(specialty=state.specialty),
                messages.provider_prompt(
                    state.specialty, providers, messages.no_slots_notice(state.provider_name)
                ),
            )
        index = parse_menu_index(text, len(slots))
        if index is None:
            return self._finish(
                sm,
                TransitionTrigger.INVALID_INPUT,
                state,
                messages.slot_prompt(state.provider_name, slots, messages.invalid_choice(len(slots))),
            )

        slot = slots[index]
        return self._finish(
            sm,
            TransitionTrigger.SLOT_CHOSEN,
            PatientDataStep(**wizard_fields(state), slot_id=slot.slot_id, slot_label=slot.label),
            messages.patient_data_prompt(),
        )

    def _handle_patient_data(
        self, sm: DialogStateMachine, state: PatientDataStep, text: str
    ) -> StepResult:
        parsed = parse_patient_data(text)
        if isinstance(parsed, PatientDataError):
            return self._finish(
                sm,
                TransitionTrigger.INVALID_INPUT,
                state,
                messages.patient_data_prompt(parsed.message),
            )

        confirm = ConfirmStep(
            **wizard_fields(state),
            patient_name=parsed.name,
            patient_phone=parsed.phone,
            birth_date=parsed.birth_date,
            reason=parsed.reason,
        )
        return self._finish(
            sm,
            TransitionTrigger.PATIENT_DATA_VALID,
            confirm,
            messages.confirmation_prompt(**_summary_fields(confirm)),
        )

    def _handle_confirm(self, sm: DialogStateMachine, state: ConfirmStep, text: str) -> StepResult:
        keyword = text.strip().upper()
        if keyword == CONFIRM_KEYWORD:
            code = self._scheduler.commit_booking(
                slot_id=state.slot_id,
                patient_name=state.patient_name,
                patient_phone=state.patient_phone,
                birth_date=state.birth_date,
                reason=state.reason,
            )
            logger.info("Booking %s confirmed for slot %s", code, state.slot_id)
            return self._finish(
                sm,
                TransitionTrigger.BOOKING_CONFIRMED,
                MenuState(),
                messages.booking_success(
                    code, state.provider_name, state.slot_label, state.patient_name
                ),
            )
        if keyword == CANCEL_KEYWORD:
            logger.info("Booking cancelled by caller")
            return self._finish(
                sm, TransitionTrigger.BOOKING_CANCELLED, MenuState(), messages.booking_cancelled()
            )
        return self._finish(
            sm,
            TransitionTrigger.INVALID_INPUT,
            state,
            messages.confirmation_prompt(
                **_summary_fields(state), notice=messages.confirm_or_cancel()
            ),
        )

    def _back_to_specialties(self, sm: DialogStateMachine, notice: str) -> StepResult:
        specialties = self._scheduler.list_specialties()
        if not specialties:
            return self.fallback(
                SpecialtyStep(), TransitionTrigger.NO_OPTIONS, messages.no_specialties()
            )
        return self._finish(
            sm,
            TransitionTrigger.NO_OPTIONS,
            SpecialtyStep(),
            messages.specialty_prompt(specialties, notice),
        )

    def _available_slots(self, provider_id: str) -> list[Slot]:
        return self._scheduler.list_available_slots(provider_id)[: self._config.max_listed_slots]


def _summary_fields(state: ConfirmStep) -> dict[str, Optional[str]]:
    return state.model_dump(exclude={"step", "provider_id", "slot_id"})
