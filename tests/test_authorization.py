"""Tests for referral extraction and authorization outcomes."""

from datetime import date

import pytest

from clinic_assistant.prompts.messages import authorization_result, format_long_date
from clinic_assistant.schemas.catalog_schema import MatchResult
from clinic_assistant.tools.authorization import (
    format_audit_label,
    interpret,
    parse_audit_days,
    response_date,
)
from clinic_assistant.tools.documents import PlainTextExtractor
from clinic_assistant.tools.errors import DocumentExtractionError

TODAY = date(2026, 10, 19)


class TestAuditInterpretation:
    @pytest.mark.parametrize("raw, days", [(None, 0), ("0", 0), ("10", 10), (" 5 ", 5), ("-3", 0)])
    def test_parse_audit_days(self, raw, days):
        assert parse_audit_days(raw) == days

    def test_unparseable_audit_days_count_as_zero(self):
        assert parse_audit_days("ten") == 0

    def test_labels(self):
        assert format_audit_label(0) == "no audit required"
        assert format_audit_label(1) == "1 day of audit"
        assert format_audit_label(10) == "10 days of audit"

    def test_response_date_is_calendar_days(self):
        assert response_date(TODAY, 10) == date(2026, 10, 29)
        assert response_date(TODAY, 0) is None

    def test_interpret_with_audit(self):
        outcome = interpret(
            MatchResult(matched_text="Colonoscopia", score=1.0, audit_lead_days="5"), TODAY
        )
        assert outcome.requires_audit
        assert outcome.audit_label == "5 days of audit"
        assert outcome.response_date == date(2026, 10, 24)

    def test_interpret_null_audit(self):
        outcome = interpret(
            MatchResult(matched_text="Artroscopia do Joelho", score=0.9, audit_lead_days=None), TODAY
        )
        assert not outcome.requires_audit
        assert outcome.response_date is None


class TestOutcomeRendering:
    def test_long_date(self):
        assert format_long_date(date(2026, 10, 26)) == "Monday, 26 October 2026"

    def test_result_with_audit(self):
        outcome = interpret(
            MatchResult(matched_text="Colonoscopia", score=1.0, audit_lead_days="5"), TODAY
        )
        text = authorization_result(outcome)
        assert "Procedure identified: Colonoscopia" in text
        assert "Expected response by: Saturday, 24 October 2026" in text

    def test_result_without_audit(self):
        outcome = interpret(
            MatchResult(matched_text="Mamografia", score=1.0, audit_lead_days="0"), TODAY
        )
        assert "already approved" in authorization_result(outcome)


class TestAuthorizationService:
    def test_process_document(self, authorization):
        outcome = authorization.process_document(
            "GUIA DE SOLICITACAO\nressonancia do joelho\nCID M23".encode("utf-8"), TODAY
        )
        assert outcome.procedure == "Ressonância Magnética do Joelho"
        assert outcome.response_date == date(2026, 10, 29)

    def test_no_match_returns_none(self, authorization):
        assert authorization.process_document(b"lorem ipsum dolor", TODAY) is None

    def test_unreadable_document_raises(self, authorization):
        with pytest.raises(DocumentExtractionError):
            authorization.process_document(b"", TODAY)


class TestPlainTextExtractor:
    def test_splits_and_strips_lines(self):
        lines = PlainTextExtractor().extract_text(b"  first line \n\n second\r\nthird  ")
        assert lines == ["first line", "second", "third"]

    def test_utf8(self):
        lines = PlainTextExtractor().extract_text("Ressonância".encode("utf-8"))
        assert lines == ["Ressonância"]

    def test_latin1_fallback(self):
        lines = PlainTextExtractor().extract_text("Crânio".encode("latin-1"))
        assert lines == ["Crânio"]

    @pytest.mark.parametrize("document", [b"", b"   \n\t\n"])
    def test_no_text_raises(self, document):
        with pytest.raises(DocumentExtractionError):
            PlainTextExtractor().extract_text(document)
