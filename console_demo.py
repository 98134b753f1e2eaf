"""
Offline console demo: scripted conversations against the real dialog core.

Runs the orchestrator, workflow engine, matcher, and in-memory
collaborators with a simulated clock. No API keys, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario authorization
"""

import argparse
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from clinic_assistant.config import settings
from clinic_assistant.schemas.conversation_schema import InboundTurn
from main import build_orchestrator

BLUE = "\033[94m"
GREEN = "\033[92m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

SAMPLE_REFERRAL = (
    "CLINICA DIGITAL - GUIA DE SOLICITACAO\n"
    "Paciente: Maria Silva\n"
    "Solicito: ressonancia do joelho direito\n"
    "RM genicular\n"
    "CID M23.2\n"
).encode("utf-8")


class Upload(bytes):
    """Marks a scripted step as a document upload."""


class SimulatedClock:
    """Advances one minute per reading so transcripts stay ordered."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._now = start or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        self._now += timedelta(minutes=1)
        return self._now


class ConsoleSession:
    """Plays scripted conversations through the orchestrator."""

    SCENARIOS: dict[str, list[Union[str, Upload]]] = {
        "booking": [
            "hello",
            "2",
            "3",
            "1",
            "1",
            "Maria Silva, (11) 98765-4321, 10/05/1985, Knee pain",
            "confirm",
        ],
        "faq": [
            "hi",
            "1",
            "What are your opening hours?",
            "Do you accept my health plan?",
            "0",
        ],
        "authorization": [
            "hi",
            "3",
            "here it is",
            Upload(SAMPLE_REFERRAL),
            "0",
        ],
        "reset": [
            "hi",
            "2",
            "9",
            "1",
            "1",
            "0",
            "2",
        ],
    }

    def __init__(self, caller_id: str = "demo-caller") -> None:
        self.orchestrator = build_orchestrator(clock=SimulatedClock())
        self.caller_id = caller_id
        self.session_id: Optional[str] = None
        self.step_trace: list[str] = []

    def send(self, step: Union[str, Upload]) -> None:
        if isinstance(step, Upload):
            print(f"\n{BLUE}[Caller] {RESET}{DIM}<uploads referral, {len(step)} bytes>{RESET}")
            inbound = InboundTurn(
                caller_id=self.caller_id, session_id=self.session_id, document=bytes(step)
            )
        else:
            print(f"\n{BLUE}[Caller] {RESET}{step}")
            inbound = InboundTurn(caller_id=self.caller_id, text=step, session_id=self.session_id)

        reply = self.orchestrator.handle_turn(inbound)
        self.session_id = reply.session_id
        step_name = reply.step.value if reply.step else "unknown"
        self.step_trace.append(step_name)
        print(f"{GREEN}{BOLD}[Assistant]{RESET} {GREEN}{reply.reply_text}{RESET}")
        print(f"{DIM}  >> Step: {step_name}{RESET}")

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  CLINIC ASSISTANT - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  Clinic: {settings.clinic.name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        for step in steps:
            self.send(step)

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{DIM}  Step trace: {' -> '.join(self.step_trace)}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default="booking",
        help="Pre-scripted scenario to play",
    )
    args = parser.parse_args()
    ConsoleSession().run_scenario(args.scenario)


if __name__ == "__main__":
    main()
