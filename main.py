"""
Clinic assistant entry point.

Wires the orchestrator to in-memory collaborators and runs an
interactive text chat in the terminal. The free-question step uses the
OpenAI responder when OPENAI_API_KEY is set and the FAQ table otherwise.

Usage:
    Interactive chat:  python main.py
    Scripted scenario: python main.py --scenario booking

Inside the chat, ``/upload <path>`` sends a referral document.
"""

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from clinic_assistant.config import settings
from clinic_assistant.conversation import Orchestrator, WorkflowEngine
from clinic_assistant.matching import ProcedureMatcher
from clinic_assistant.schemas.conversation_schema import InboundTurn
from clinic_assistant.tools import (
    AuthorizationService,
    InMemoryProcedureCatalog,
    InMemoryScheduler,
    InMemoryTranscriptStore,
    PlainTextExtractor,
    build_responder,
)

logger = logging.getLogger(__name__)

UPLOAD_COMMAND = "/upload"


def build_orchestrator(clock: Optional[Callable[[], datetime]] = None) -> Orchestrator:
    """Build an orchestrator backed by in-memory stores and the sample catalog."""
    engine = WorkflowEngine(
        scheduler=InMemoryScheduler(),
        responder=build_responder(settings.responder),
        config=settings.session,
    )
    matcher = ProcedureMatcher(InMemoryProcedureCatalog(), settings.matcher)
    return Orchestrator(
        transcripts=InMemoryTranscriptStore(),
        engine=engine,
        authorization=AuthorizationService(PlainTextExtractor(), matcher),
        clock=clock,
        config=settings.session,
    )


def _run_chat(caller_id: str) -> None:
    orchestrator = build_orchestrator()
    session_id: Optional[str] = None
    print(f"{settings.clinic.name} - type 'quit' to exit, '{UPLOAD_COMMAND} <path>' to send a referral")

    while True:
        try:
            text = input("\n[You] ").strip()
        except EOFError:
            break
        if text.lower() in ("quit", "exit", "q"):
            break

        document = None
        if text.startswith(UPLOAD_COMMAND):
            path = Path(text[len(UPLOAD_COMMAND):].strip())
            if not path.is_file():
                print(f"File not found: {path}")
                continue
            document = path.read_bytes()
            text = ""

        reply = orchestrator.handle_turn(
            InboundTurn(caller_id=caller_id, text=text, session_id=session_id, document=document)
        )
        session_id = reply.session_id
        print(f"\n[Assistant] {reply.reply_text}")

    print("\nSession ended.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Clinic self-service assistant")
    parser.add_argument(
        "--scenario",
        choices=["booking", "faq", "authorization", "reset"],
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    parser.add_argument("--caller", default="console-caller", help="Caller identifier")
    args = parser.parse_args()

    if args.scenario:
        from console_demo import ConsoleSession

        ConsoleSession().run_scenario(args.scenario)
    else:
        _run_chat(args.caller)


if __name__ == "__main__":
    main()
