"""Session and turn models persisted by the transcript store."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from clinic_assistant.schemas.dialog_schema import DialogState, DialogStep


class Sender(str, Enum):
    CALLER = "caller"
    SYSTEM = "system"


class Channel(str, Enum):
    """Whether a turn is router chrome (menus, prompts) or conversational content."""

    CHROME = "chrome"
    CONTENT = "content"


class SessionStatus(str, Enum):
    OPEN = "open"
    INACTIVE = "inactive"
    CLOSED = "closed"


class Turn(BaseModel):
    """A single message exchanged within a session. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    sender: Sender
    text: str
    timestamp: datetime
    # None on transcripts written before turns were tagged
    channel: Optional[Channel] = None


class Session(BaseModel):
    """Ordered turn history for one interaction with one caller.

    ``state`` is None only for legacy transcripts; the reconstructor
    derives the step from the turn text in that case.
    """

    session_id: Optional[str] = None
    caller_id: str
    started_at: datetime
    last_turn_at: datetime
    status: SessionStatus = SessionStatus.OPEN
    turns: list[Turn] = Field(default_factory=list)
    state: Optional[DialogState] = None

    @classmethod
    def start(cls, caller_id: str, now: datetime) -> "Session":
        return cls(caller_id=caller_id, started_at=now, last_turn_at=now)

    def append(self, turn: Turn) -> None:
        """Append a turn and advance ``last_turn_at`` to its timestamp."""
        if self.turns and turn.timestamp < self.turns[-1].timestamp:
            raise ValueError("Turns must be appended in chronological order")
        self.turns.append(turn)
        self.last_turn_at = turn.timestamp

    def system_turns(self) -> list[Turn]:
        return [t for t in self.turns if t.sender == Sender.SYSTEM]

    @property
    def is_open(self) -> bool:
        return self.status == SessionStatus.OPEN


class InboundTurn(BaseModel):
    """One caller message as received from the channel."""

    caller_id: str
    text: str = ""
    session_id: Optional[str] = None
    document: Optional[bytes] = None


class TurnReply(BaseModel):
    """The assistant's reply to an inbound turn."""

    reply_text: str
    session_id: str
    step: Optional[DialogStep] = None
