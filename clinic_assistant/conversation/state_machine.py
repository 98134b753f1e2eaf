"""
Finite state machine for the clinic dialog tree.

Every step change the workflow engine makes goes through an explicit
transition table. Reset, collaborator failure and anomaly recovery are
legal from every step and always land on the main menu.

Usage:
    sm = DialogStateMachine()
    sm.transition(TransitionTrigger.SELECT_BOOKING)
    assert sm.current_step == DialogStep.SPECIALTY
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from clinic_assistant.schemas.dialog_schema import DialogStep

logger = logging.getLogger(__name__)


class TransitionTrigger(str, Enum):
    """Events that cause step transitions."""
    SELECT_QUESTIONS = "select_questions"
    SELECT_BOOKING = "select_booking"
    SELECT_AUTHORIZATION = "select_authorization"
    WELCOME = "welcome"
    INVALID_INPUT = "invalid_input"
    NO_OPTIONS = "no_options"
    CHOICE_UNAVAILABLE = "choice_unavailable"
    QUESTION_ANSWERED = "question_answered"
    DOCUMENT_PROCESSED = "document_processed"
    SPECIALTY_CHOSEN = "specialty_chosen"
    PROVIDER_CHOSEN = "provider_chosen"
    SLOT_CHOSEN = "slot_chosen"
    PATIENT_DATA_VALID = "patient_data_valid"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    RESET = "reset"
    COLLABORATOR_FAILED = "collaborator_failed"
    ANOMALY = "anomaly"


# Legal from every step, always to the main menu
GLOBAL_TRIGGERS = frozenset({
    TransitionTrigger.RESET,
    TransitionTrigger.COLLABORATOR_FAILED,
    TransitionTrigger.ANOMALY,
})


@dataclass
class Transition:
    """A single valid step transition."""
    from_step: DialogStep
    to_step: DialogStep
    trigger: TransitionTrigger


@dataclass
class StepEntry:
    """Recorded history entry for a step visit."""
    step: DialogStep
    entered_at: datetime
    trigger: Optional[TransitionTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current step."""


class DialogStateMachine:
    """
    Deterministic step controller for one turn of the dialog.

    The workflow engine builds a machine at the session's current step,
    fires the trigger that the caller's input produced, and renders the
    prompt of the step it lands on.
    """

    TRANSITIONS: list[Transition] = [
        # --- Main menu ---
        Transition(DialogStep.MENU, DialogStep.MENU, TransitionTrigger.WELCOME),
        Transition(DialogStep.MENU, DialogStep.FREE_QA, TransitionTrigger.SELECT_QUESTIONS),
        Transition(DialogStep.MENU, DialogStep.SPECIALTY, TransitionTrigger.SELECT_BOOKING),
        Transition(DialogStep.MENU, DialogStep.AUTHORIZATION, TransitionTrigger.SELECT_AUTHORIZATION),
        Transition(DialogStep.MENU, DialogStep.MENU, TransitionTrigger.INVALID_INPUT),
        Transition(DialogStep.MENU, DialogStep.MENU, TransitionTrigger.NO_OPTIONS),

        # --- Free questions ---
        Transition(DialogStep.FREE_QA, DialogStep.FREE_QA, TransitionTrigger.QUESTION_ANSWERED),
        Transition(DialogStep.FREE_QA, DialogStep.FREE_QA, TransitionTrigger.INVALID_INPUT),

        # --- Authorization lookup ---
        Transition(DialogStep.AUTHORIZATION, DialogStep.AUTHORIZATION,
                   TransitionTrigger.DOCUMENT_PROCESSED),
        Transition(DialogStep.AUTHORIZATION, DialogStep.AUTHORIZATION,
                   TransitionTrigger.INVALID_INPUT),

        # --- Booking wizard ---
        Transition(DialogStep.SPECIALTY, DialogStep.PROVIDER, TransitionTrigger.SPECIALTY_CHOSEN),
        Transition(DialogStep.SPECIALTY, DialogStep.SPECIALTY, TransitionTrigger.INVALID_INPUT),
        Transition(DialogStep.SPECIALTY, DialogStep.SPECIALTY, TransitionTrigger.CHOICE_UNAVAILABLE),
        Transition(DialogStep.SPECIALTY, DialogStep.MENU, TransitionTrigger.NO_OPTIONS),
        Transition(DialogStep.PROVIDER, DialogStep.SLOT, TransitionTrigger.PROVIDER_CHOSEN),
        Transition(DialogStep.PROVIDER, DialogStep.PROVIDER, TransitionTrigger.INVALID_INPUT),
        Transition(DialogStep.PROVIDER, DialogStep.PROVIDER, TransitionTrigger.CHOICE_UNAVAILABLE),
        Transition(DialogStep.PROVIDER, DialogStep.SPECIALTY, TransitionTrigger.NO_OPTIONS),
        Transition(DialogStep.SLOT, DialogStep.PATIENT_DATA, TransitionTrigger.SLOT_CHOSEN),
        Transition(DialogStep.SLOT, DialogStep.SLOT, TransitionTrigger.INVALID_INPUT),
        Transition(DialogStep.SLOT, DialogStep.PROVIDER, TransitionTrigger.NO_OPTIONS),
        Transition(DialogStep.PATIENT_DATA, DialogStep.CONFIRM, TransitionTrigger.PATIENT_DATA_VALID),
        Transition(DialogStep.PATIENT_DATA, DialogStep.PATIENT_DATA, TransitionTrigger.INVALID_INPUT),

        # --- Confirmation gate ---
        Transition(DialogStep.CONFIRM, DialogStep.MENU, TransitionTrigger.BOOKING_CONFIRMED),
        Transition(DialogStep.CONFIRM, DialogStep.MENU, TransitionTrigger.BOOKING_CANCELLED),
        Transition(DialogStep.CONFIRM, DialogStep.CONFIRM, TransitionTrigger.INVALID_INPUT),
    ]

    def __init__(self, initial: DialogStep = DialogStep.MENU) -> None:
        self._current_step = initial
        self._history: list[StepEntry] = [
            StepEntry(step=initial, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_step(self) -> DialogStep:
        return self._current_step

    def _target(self, trigger: TransitionTrigger) -> Optional[DialogStep]:
        if trigger in GLOBAL_TRIGGERS:
            return DialogStep.MENU
        for t in self.TRANSITIONS:
            if t.from_step == self._current_step and t.trigger == trigger:
                return t.to_step
        return None

    def transition(self, trigger: TransitionTrigger) -> DialogStep:
        """
        Execute a step transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new dialog step.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        target = self._target(trigger)
        if target is None:
            valid = [t.value for t in self.get_valid_triggers()]
            raise InvalidTransitionError(
                f"No valid transition from '{self._current_step.value}' "
                f"with trigger '{trigger.value}'. Valid triggers: {valid}"
            )

        old_step = self._current_step
        self._current_step = target
        self._history.append(StepEntry(
            step=target,
            entered_at=datetime.now(timezone.utc),
            trigger=trigger,
        ))
        logger.debug(
            "Step transition: %s -> %s (trigger: %s)",
            old_step.value, target.value, trigger.value,
        )
        return target

    def can_transition(self, trigger: TransitionTrigger) -> bool:
        return self._target(trigger) is not None

    def get_valid_triggers(self) -> list[TransitionTrigger]:
        """Return all triggers valid from the current step."""
        local = [t.trigger for t in self.TRANSITIONS if t.from_step == self._current_step]
        return local + [t for t in TransitionTrigger if t in GLOBAL_TRIGGERS]

    def get_history(self) -> list[StepEntry]:
        return list(self._history)

    def get_step_trace(self) -> list[str]:
        """Return ordered list of step names visited."""
        return [entry.step.value for entry in self._history]
