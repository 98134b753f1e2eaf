"""
Exam authorization lookup.

Turns an uploaded referral into a caller-facing outcome: extract the
text lines, match them against the procedure catalog, and derive the
audit period and expected response date from the winning record.
"""

import logging
from datetime import date, timedelta
from typing import Optional, Protocol, Sequence

from clinic_assistant.schemas.catalog_schema import AuthorizationOutcome, MatchResult
from clinic_assistant.tools.documents import DocumentExtractor

logger = logging.getLogger(__name__)


class Matcher(Protocol):
    def best_match(self, fragments: Sequence[str]) -> Optional[MatchResult]: ...


def parse_audit_days(value: Optional[str]) -> int:
    """Audit lead time in days; missing or unparseable values count as zero."""
    if value is None:
        return 0
    try:
        return max(int(str(value).strip()), 0)
    except ValueError:
        logger.warning("Unparseable audit lead time: %r", value)
        return 0


def format_audit_label(days: int) -> str:
    if days <= 0:
        return "no audit required"
    if days == 1:
        return "1 day of audit"
    return f"{days} days of audit"


def response_date(today: date, days: int) -> Optional[date]:
    """Expected audit response date, ``days`` calendar days from today."""
    if days <= 0:
        return None
    return today + timedelta(days=days)


def interpret(result: MatchResult, today: date) -> AuthorizationOutcome:
    days = parse_audit_days(result.audit_lead_days)
    return AuthorizationOutcome(
        procedure=result.matched_text,
        requires_audit=days > 0,
        audit_label=format_audit_label(days),
        response_date=response_date(today, days),
        score=result.score,
    )


class AuthorizationService:
    """Document extraction plus procedure matching for referral uploads."""

    def __init__(self, extractor: DocumentExtractor, matcher: Matcher) -> None:
        self._extractor = extractor
        self._matcher = matcher

    def process_document(self, document: bytes, today: date) -> Optional[AuthorizationOutcome]:
        """Return the authorization outcome, or None when no procedure is identified.

        Raises:
            DocumentExtractionError: the document has no readable text.
        """
        lines = self._extractor.extract_text(document)
        result = self._matcher.best_match(lines)
        if result is None:
            return None
        outcome = interpret(result, today)
        logger.info("Authorization outcome for '%s': %s", outcome.procedure, outcome.audit_label)
        return outcome
