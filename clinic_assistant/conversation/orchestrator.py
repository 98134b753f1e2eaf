"""
Top-level entry point, invoked once per inbound turn.

Resolves the caller's session (starting a fresh one when the previous
one went quiet for too long), routes the turn to the workflow engine or,
for referral uploads, to the authorization service, then appends both
turns and the new dialog state to the transcript store.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from clinic_assistant.config import SessionConfig, settings
from clinic_assistant.conversation.inactivity import is_expired, is_resumable
from clinic_assistant.conversation.state_machine import TransitionTrigger
from clinic_assistant.conversation.workflow import StepResult, WorkflowEngine
from clinic_assistant.logging_context import get_session_logger, set_session_id
from clinic_assistant.prompts import messages
from clinic_assistant.schemas.conversation_schema import (
    InboundTurn,
    Sender,
    Session,
    Turn,
    TurnReply,
)
from clinic_assistant.schemas.dialog_schema import DialogState, DialogStep
from clinic_assistant.tools.authorization import AuthorizationService
from clinic_assistant.tools.errors import CollaboratorError, DocumentExtractionError
from clinic_assistant.tools.transcripts import TranscriptStore

logger = get_session_logger(__name__)

DOCUMENT_PLACEHOLDER = "[document uploaded]"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Orchestrator:
    """
    Per-turn coordinator between the caller channel and the dialog core.

    Only a fully formed reply is persisted. Any failure below this layer
    resolves to an apology plus the main menu.
    """

    def __init__(
        self,
        transcripts: TranscriptStore,
        engine: WorkflowEngine,
        authorization: AuthorizationService,
        clock: Optional[Callable[[], datetime]] = None,
        config: Optional[SessionConfig] = None,
    ) -> None:
        self._transcripts = transcripts
        self._engine = engine
        self._authorization = authorization
        self._clock = clock or _utc_now
        self._config = config or settings.session

    def handle_turn(self, inbound: InboundTurn) -> TurnReply:
        now = self._clock()
        try:
            session = self.resolve_session(inbound.caller_id, inbound.session_id, now)
        except CollaboratorError:
            logger.exception("Transcript store unavailable for caller %s", inbound.caller_id)
            return TurnReply(
                reply_text=messages.apology(),
                session_id=inbound.session_id or "",
                step=DialogStep.MENU,
            )
        set_session_id(session.session_id or "NEW_SESSION")
        previous = self._engine.current_state(session)

        try:
            result = self._route(session, previous, inbound, now)
        except Exception:
            logger.exception("Unhandled failure while processing turn")
            result = self._engine.fallback(
                previous,
                TransitionTrigger.COLLABORATOR_FAILED,
                messages.apology(),
            )

        updated = session.model_copy(deep=True)
        stamp = now
        if session.last_turn_at > now:
            logger.warning(
                "Clock reading %s is behind the last turn at %s, keeping turn order",
                now.isoformat(), session.last_turn_at.isoformat(),
            )
            stamp = session.last_turn_at
        caller_text = inbound.text
        if not caller_text.strip() and inbound.document is not None:
            caller_text = DOCUMENT_PLACEHOLDER
        updated.append(Turn(
            sender=Sender.CALLER,
            text=caller_text,
            timestamp=stamp,
            channel=result.inbound_channel,
        ))
        updated.append(Turn(
            sender=Sender.SYSTEM,
            text=result.reply,
            timestamp=stamp,
            channel=result.channel,
        ))
        updated.state = result.state

        try:
            saved = self._transcripts.append_turns_and_save(updated)
        except CollaboratorError:
            logger.exception("Failed to persist turn")
            return TurnReply(
                reply_text=messages.apology(),
                session_id=session.session_id or "",
                step=DialogStep.MENU,
            )

        set_session_id(saved.session_id or "NEW_SESSION")
        logger.info(
            "Turn handled: %s -> %s (trigger: %s)",
            previous.step.value,
            result.step.value,
            result.trigger.value,
        )
        return TurnReply(reply_text=result.reply, session_id=saved.session_id, step=result.step)

    def resolve_session(self, caller_id: str, session_id: Optional[str], now: datetime) -> Session:
        """Return the session this turn continues, or a fresh one.

        A requested session that is unknown, belongs to another caller, or
        has expired is left untouched and a new session is started.
        """
        timeout = self._config.inactivity_timeout_minutes
        if session_id:
            session = self._transcripts.load_session(session_id)
            if session is not None and is_resumable(session, caller_id, now, timeout):
                return session
            logger.info("Session %s cannot be resumed by %s, starting a new one", session_id, caller_id)
            return Session.start(caller_id, now)

        session = self._transcripts.find_latest_open_session(caller_id)
        if session is None:
            return Session.start(caller_id, now)
        if is_expired(session, now, timeout):
            logger.info(
                "Session %s inactive for more than %d minutes, starting a new one",
                session.session_id, timeout,
            )
            return Session.start(caller_id, now)
        return session

    def _route(
        self, session: Session, state: DialogState, inbound: InboundTurn, now: datetime
    ) -> StepResult:
        if (
            inbound.document is not None
            and session.turns
            and state.step == DialogStep.AUTHORIZATION
            and not self._engine.is_reset(inbound.text)
        ):
            return self._process_document(inbound.document, now)
        return self._engine.handle(session, inbound.text)

    def _process_document(self, document: bytes, now: datetime) -> StepResult:
        try:
            outcome = self._authorization.process_document(document, now.date())
        except DocumentExtractionError as exc:
            logger.warning("Referral could not be read: %s", exc)
            return self._engine.authorization_unreadable()
        return self._engine.authorization_result(outcome)
