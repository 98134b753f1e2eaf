"""Shared test fixtures and helpers."""

from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

import pytest

from clinic_assistant.conversation.orchestrator import Orchestrator
from clinic_assistant.conversation.workflow import WorkflowEngine
from clinic_assistant.matching.matcher import ProcedureMatcher
from clinic_assistant.schemas.conversation_schema import (
    Channel,
    InboundTurn,
    Sender,
    Session,
    Turn,
    TurnReply,
)
from clinic_assistant.schemas.scheduling_schema import Provider, Slot
from clinic_assistant.tools.authorization import AuthorizationService
from clinic_assistant.tools.catalog import InMemoryProcedureCatalog
from clinic_assistant.tools.documents import PlainTextExtractor
from clinic_assistant.tools.responder import FaqResponder
from clinic_assistant.tools.scheduling import InMemoryScheduler
from clinic_assistant.tools.transcripts import InMemoryTranscriptStore

START = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)

TEST_PROVIDERS = [
    Provider(provider_id="doc-1", name="Ana Souza", specialty="Cardiology", city="Sao Paulo"),
    Provider(provider_id="doc-2", name="Bruno Reis", specialty="Cardiology", city="Campinas"),
    Provider(provider_id="doc-3", name="Carla Dias", specialty="Dermatology", city="Sao Paulo"),
]


def _slot(provider_id: str, day: int, hour: int) -> Slot:
    start = datetime(2026, 10, day, hour, 0)
    return Slot(
        slot_id=f"{provider_id}-{day}-{hour}",
        provider_id=provider_id,
        start=start,
        end=start + timedelta(minutes=30),
    )


# Ana Souza has three slots; Bruno Reis and Carla Dias have none
TEST_SLOTS = [_slot("doc-1", 20, 8), _slot("doc-1", 20, 9), _slot("doc-1", 21, 14)]


class FakeClock:
    """Manually advanced clock for inactivity tests."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += timedelta(minutes=minutes)


class RecordingResponder:
    """Responder double that records what it was asked."""

    def __init__(self, answer: str = "Recorded answer.") -> None:
        self.answer = answer
        self.calls: list[tuple[str, list[Turn]]] = []

    def respond(self, text: str, prior_turns: Sequence[Turn]) -> str:
        self.calls.append((text, list(prior_turns)))
        return self.answer


class Caller:
    """Sends turns through the orchestrator and tracks the session id."""

    def __init__(self, orchestrator: Orchestrator, caller_id: str = "caller-1") -> None:
        self.orchestrator = orchestrator
        self.caller_id = caller_id
        self.session_id: Optional[str] = None

    def send(self, text: str = "", document: Optional[bytes] = None) -> TurnReply:
        reply = self.orchestrator.handle_turn(InboundTurn(
            caller_id=self.caller_id,
            text=text,
            session_id=self.session_id,
            document=document,
        ))
        self.session_id = reply.session_id
        return reply


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return InMemoryScheduler(providers=TEST_PROVIDERS, slots=TEST_SLOTS)


@pytest.fixture
def responder():
    return FaqResponder()


@pytest.fixture
def transcripts():
    return InMemoryTranscriptStore()


@pytest.fixture
def catalog():
    return InMemoryProcedureCatalog()


@pytest.fixture
def matcher(catalog):
    return ProcedureMatcher(catalog)


@pytest.fixture
def engine(scheduler, responder):
    return WorkflowEngine(scheduler, responder)


@pytest.fixture
def authorization(matcher):
    return AuthorizationService(PlainTextExtractor(), matcher)


@pytest.fixture
def orchestrator(transcripts, engine, authorization, clock):
    return Orchestrator(transcripts, engine, authorization, clock=clock)


@pytest.fixture
def caller(orchestrator):
    return Caller(orchestrator)


@pytest.fixture
def make_turn():
    def _make(
        sender: Sender,
        text: str,
        timestamp: datetime = START,
        channel: Optional[Channel] = None,
    ) -> Turn:
        return Turn(sender=sender, text=text, timestamp=timestamp, channel=channel)

    return _make


@pytest.fixture
def make_session(make_turn):
    """Build a session from (sender, text) pairs, one minute apart."""

    def _make(pairs: Sequence[tuple[Sender, str]] = (), state=None) -> Session:
        session = Session.start("caller-1", START)
        for i, (sender, text) in enumerate(pairs):
            session.append(make_turn(sender, text, START + timedelta(minutes=i)))
        session.state = state
        return session

    return _make
