"""Lazy inactivity policy, evaluated at the start of each inbound turn."""

from datetime import datetime, timedelta
from typing import Optional

from clinic_assistant.config import settings
from clinic_assistant.schemas.conversation_schema import Session


def is_expired(session: Session, now: datetime, timeout_minutes: Optional[int] = None) -> bool:
    """True when more than ``timeout_minutes`` have passed since the last turn."""
    if timeout_minutes is None:
        timeout_minutes = settings.session.inactivity_timeout_minutes
    return now - session.last_turn_at > timedelta(minutes=timeout_minutes)


def is_resumable(session: Session, caller_id: str, now: datetime, timeout_minutes: Optional[int] = None) -> bool:
    """Whether an inbound turn from ``caller_id`` may continue ``session``."""
    return (
        session.caller_id == caller_id
        and session.is_open
        and not is_expired(session, now, timeout_minutes)
    )
