"""Tests for step recovery from legacy transcripts and turn classification."""

import pytest

from clinic_assistant.conversation.reconstructor import (
    classify_text,
    content_turns,
    is_chrome_turn,
    reconstruct_step,
)
from clinic_assistant.prompts import messages
from clinic_assistant.schemas.conversation_schema import Channel, Sender
from clinic_assistant.schemas.dialog_schema import DialogStep
from clinic_assistant.schemas.scheduling_schema import Provider


PROVIDER = Provider(provider_id="doc-1", name="Ana Souza", specialty="Cardiology", city="Sao Paulo")


class TestClassifyText:
    @pytest.mark.parametrize("text, step", [
        (messages.main_menu(), DialogStep.MENU),
        (messages.free_qa_intro(), DialogStep.FREE_QA),
        (messages.free_qa_answer("We open at 7am."), DialogStep.FREE_QA),
        (messages.authorization_intro(), DialogStep.AUTHORIZATION),
        (messages.authorization_no_match(), DialogStep.AUTHORIZATION),
        (messages.specialty_prompt(["Cardiology"]), DialogStep.SPECIALTY),
        (messages.provider_prompt("Cardiology", [PROVIDER]), DialogStep.PROVIDER),
        (messages.slot_prompt("Ana Souza", []), DialogStep.SLOT),
        (messages.patient_data_prompt(), DialogStep.PATIENT_DATA),
        (
            messages.confirmation_prompt(
                "Cardiology", "Ana Souza", "20/10/2026 at 08:00", "Maria", "11987654321"
            ),
            DialogStep.CONFIRM,
        ),
    ])
    def test_every_prompt_classifies_to_its_step(self, text, step):
        assert classify_text(text) == step

    def test_success_reply_classifies_as_menu(self):
        text = messages.booking_success("AGD00000001", "Ana Souza", "20/10/2026 at 08:00", "Maria")
        assert classify_text(text) == DialogStep.MENU

    def test_apology_classifies_as_menu(self):
        assert classify_text(messages.apology()) == DialogStep.MENU

    def test_markers_match_regardless_of_case_and_accents(self):
        assert classify_text("AVAILABLE SPECIÁLTIES:") == DialogStep.SPECIALTY

    def test_unmarked_text(self):
        assert classify_text("Thank you!") is None


class TestReconstructStep:
    def test_empty_history_defaults_to_menu(self):
        assert reconstruct_step([]) == DialogStep.MENU

    def test_no_marker_defaults_to_menu(self, make_session):
        session = make_session([(Sender.CALLER, "hi"), (Sender.SYSTEM, "Hello there")])
        assert reconstruct_step(session.turns) == DialogStep.MENU

    def test_most_recent_system_turn_wins(self, make_session):
        session = make_session([
            (Sender.SYSTEM, messages.main_menu()),
            (Sender.CALLER, "2"),
            (Sender.SYSTEM, messages.specialty_prompt(["Cardiology"])),
        ])
        assert reconstruct_step(session.turns) == DialogStep.SPECIALTY

    def test_caller_turns_are_ignored(self, make_session):
        session = make_session([
            (Sender.SYSTEM, messages.main_menu()),
            (Sender.CALLER, "Available specialties please"),
        ])
        assert reconstruct_step(session.turns) == DialogStep.MENU

    def test_skips_unmarked_recent_turns(self, make_session):
        session = make_session([
            (Sender.SYSTEM, messages.patient_data_prompt()),
            (Sender.SYSTEM, "Processing..."),
        ])
        assert reconstruct_step(session.turns) == DialogStep.PATIENT_DATA

    def test_marker_outside_window_is_not_seen(self, make_session):
        pairs = [(Sender.SYSTEM, messages.free_qa_intro())]
        pairs += [(Sender.SYSTEM, "ok") for _ in range(5)]
        session = make_session(pairs)
        assert reconstruct_step(session.turns, window=5) == DialogStep.MENU
        assert reconstruct_step(session.turns, window=6) == DialogStep.FREE_QA

    def test_idempotent(self, make_session):
        session = make_session([
            (Sender.SYSTEM, messages.main_menu()),
            (Sender.CALLER, "1"),
            (Sender.SYSTEM, messages.free_qa_intro()),
        ])
        first = reconstruct_step(session.turns)
        second = reconstruct_step(session.turns)
        assert first == second == DialogStep.FREE_QA


class TestChromeClassification:
    def test_tagged_chrome(self, make_turn):
        assert is_chrome_turn(make_turn(Sender.SYSTEM, "anything", channel=Channel.CHROME))

    def test_tagged_content_wins_over_markers(self, make_turn):
        turn = make_turn(Sender.SYSTEM, messages.main_menu(), channel=Channel.CONTENT)
        assert not is_chrome_turn(turn)

    def test_untagged_menu_is_chrome(self, make_turn):
        assert is_chrome_turn(make_turn(Sender.SYSTEM, messages.main_menu()))

    def test_untagged_answer_is_content(self, make_turn):
        turn = make_turn(Sender.SYSTEM, messages.free_qa_answer("We open at 7am."))
        assert not is_chrome_turn(turn)

    def test_untagged_menu_number_is_chrome(self, make_turn):
        assert is_chrome_turn(make_turn(Sender.CALLER, "1"))

    def test_untagged_question_is_content(self, make_turn):
        assert not is_chrome_turn(make_turn(Sender.CALLER, "Do you open on Saturdays?"))

    def test_content_turns_filters_chrome(self, make_session):
        session = make_session([
            (Sender.SYSTEM, messages.main_menu()),
            (Sender.CALLER, "1"),
            (Sender.SYSTEM, messages.free_qa_intro()),
            (Sender.CALLER, "What are your hours?"),
        ])
        kept = content_turns(session.turns)
        assert [t.text for t in kept] == ["What are your hours?"]
