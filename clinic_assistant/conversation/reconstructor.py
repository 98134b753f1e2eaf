"""
Step recovery for transcripts persisted without a dialog state.

Sessions written before the dialog state was stored carry only turn
text. The current step is recovered by scanning the most recent system
turns for the marker phrases each step's prompt contains.
"""

import logging
from typing import Optional, Sequence

from clinic_assistant.config import settings
from clinic_assistant.prompts import messages
from clinic_assistant.schemas.conversation_schema import Channel, Sender, Turn
from clinic_assistant.schemas.dialog_schema import DialogStep
from clinic_assistant.utils import fold_text

logger = logging.getLogger(__name__)

# Most specific first: wizard sub-steps before the generic menu
STEP_MARKERS: list[tuple[DialogStep, tuple[str, ...]]] = [
    (DialogStep.CONFIRM, (messages.CONFIRM_MARKER,)),
    (DialogStep.PATIENT_DATA, (messages.PATIENT_DATA_MARKER,)),
    (DialogStep.SLOT, (messages.SLOT_MARKER,)),
    (DialogStep.PROVIDER, (messages.PROVIDER_MARKER,)),
    (DialogStep.SPECIALTY, (messages.SPECIALTY_MARKER,)),
    (DialogStep.AUTHORIZATION, messages.AUTHORIZATION_MARKERS),
    (DialogStep.FREE_QA, messages.FREE_QA_MARKERS),
    (DialogStep.MENU, (messages.MENU_MARKER,)),
]

_FOLDED_MARKERS = [
    (step, tuple(fold_text(m) for m in markers)) for step, markers in STEP_MARKERS
]

# Markers that identify router chrome. The free-question reminder is left
# out because it is appended to responder answers.
_CHROME_MARKERS = tuple(
    marker
    for step, markers in _FOLDED_MARKERS
    for marker in markers
    if marker != fold_text(messages.FREE_QA_MARKERS[1])
)


def classify_text(text: str) -> Optional[DialogStep]:
    """Return the step whose marker appears in ``text``, most specific first."""
    folded = fold_text(text)
    for step, markers in _FOLDED_MARKERS:
        if any(marker in folded for marker in markers):
            return step
    return None


def reconstruct_step(turns: Sequence[Turn], window: Optional[int] = None) -> DialogStep:
    """Infer the current step from the last ``window`` system turns.

    Scans from the most recent system turn backwards and returns the step
    of the first turn carrying a marker. Defaults to the main menu.
    """
    window = window or settings.session.reconstruction_window
    system_turns = [t for t in turns if t.sender == Sender.SYSTEM][-window:]
    for turn in reversed(system_turns):
        step = classify_text(turn.text)
        if step is not None:
            return step
    logger.debug("No step marker in the last %d system turns", len(system_turns))
    return DialogStep.MENU


def is_chrome_turn(turn: Turn) -> bool:
    """Whether a turn is router chrome rather than conversational content.

    Tagged turns answer from their channel. Untagged system turns are
    chrome when they carry a prompt marker; untagged caller turns are
    chrome when they are bare menu numbers.
    """
    if turn.channel is not None:
        return turn.channel == Channel.CHROME
    text = turn.text.strip()
    if turn.sender == Sender.CALLER:
        return text.isdigit()
    folded = fold_text(text)
    return any(marker in folded for marker in _CHROME_MARKERS)


def content_turns(turns: Sequence[Turn]) -> list[Turn]:
    return [t for t in turns if not is_chrome_turn(t)]
