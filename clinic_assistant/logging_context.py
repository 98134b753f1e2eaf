"""Session correlation logging context.

Attaches the active session id to every log record so a single caller's
turn can be traced through the orchestrator, workflow engine, and
matcher.

Usage:
    from clinic_assistant.logging_context import get_session_logger, set_session_id

    set_session_id("3f2c9a")
    logger = get_session_logger(__name__)
    logger.info("Processing turn")  # record.session_id == "3f2c9a"
"""

import logging
from contextvars import ContextVar

_session_id: ContextVar[str] = ContextVar("session_id", default="NO_SESSION")


def set_session_id(session_id: str) -> None:
    """Set the correlation ID for the current context."""
    _session_id.set(session_id)


def get_session_id() -> str:
    return _session_id.get()


class SessionIdFilter(logging.Filter):
    """Injects session_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def get_session_logger(name: str) -> logging.Logger:
    """Return a logger with the SessionIdFilter attached.

    Formatters can include ``%(session_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger
