"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""

import pytest


class TestSchemaImports:
    def test_import_conversation_schema(self):
        from clinic_assistant.schemas.conversation_schema import (
            Channel, InboundTurn, Sender, Session, SessionStatus, Turn, TurnReply,
        )
        assert Sender.SYSTEM == "system"
        assert Channel.CHROME == "chrome"
        assert SessionStatus.OPEN == "open"

    def test_import_dialog_schema(self):
        from clinic_assistant.schemas.dialog_schema import WIZARD_STEPS, DialogStep, MenuState
        assert len(WIZARD_STEPS) == 5
        assert MenuState().step == DialogStep.MENU

    def test_import_catalog_schema(self):
        from clinic_assistant.schemas.catalog_schema import CatalogField, MatchResult
        assert len(CatalogField) == 5
        assert MatchResult(matched_text="x", score=0.5).audit_lead_days is None


class TestConversationImports:
    def test_import_conversation_package(self):
        from clinic_assistant.conversation import (
            DialogStateMachine, Orchestrator, TransitionTrigger, WorkflowEngine,
            is_chrome_turn, reconstruct_step,
        )
        from clinic_assistant.schemas.dialog_schema import DialogStep
        assert DialogStateMachine().current_step == DialogStep.MENU
        assert callable(reconstruct_step)

    def test_import_patient_data(self):
        from clinic_assistant.conversation.patient_data import PatientData, parse_patient_data
        assert isinstance(parse_patient_data("Ana, 11987654321"), PatientData)


class TestToolImports:
    def test_import_tools_package(self):
        from clinic_assistant.tools import (
            AuthorizationService, CollaboratorError, DocumentExtractionError,
            InMemoryProcedureCatalog, InMemoryScheduler, InMemoryTranscriptStore,
        )
        assert issubclass(DocumentExtractionError, CollaboratorError)
        assert InMemoryProcedureCatalog().records()

    def test_import_matching_package(self):
        from clinic_assistant.matching import ProcedureMatcher, similarity
        assert similarity("joelho", "joelho") == 1.0


class TestConfigImport:
    def test_import_config(self):
        from clinic_assistant.config import settings
        assert settings.clinic.name
        assert settings.session.reset_token.strip()
        assert 0.0 <= settings.matcher.similarity_threshold <= 1.0


class TestConsoleDemo:
    @pytest.fixture(autouse=True)
    def offline_responder(self, monkeypatch):
        from clinic_assistant.tools.responder import FaqResponder
        monkeypatch.setattr("main.build_responder", lambda config: FaqResponder())

    def test_console_session_imports(self):
        from console_demo import ConsoleSession
        session = ConsoleSession()
        assert session.session_id is None
        assert set(session.SCENARIOS) == {"booking", "faq", "authorization", "reset"}

    def test_faq_scenario_trace(self, capsys):
        from console_demo import ConsoleSession
        session = ConsoleSession()
        session.run_scenario("faq")
        assert session.step_trace == ["menu", "free_qa", "free_qa", "free_qa", "menu"]
        assert "We are open" in capsys.readouterr().out

    def test_authorization_scenario_trace(self, capsys):
        from console_demo import ConsoleSession
        session = ConsoleSession()
        session.run_scenario("authorization")
        assert session.step_trace == [
            "menu", "authorization", "authorization", "authorization", "menu",
        ]
        assert "Ressonância Magnética do Joelho" in capsys.readouterr().out
