"""Procedure catalog records and matcher results."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CatalogField(str, Enum):
    """Descriptive catalog fields, from most to least specific."""

    PROCEDURE_NAME = "procedure_name"
    TERMINOLOGY_LABEL = "terminology_label"
    SUBGROUP = "subgroup"
    GROUP = "group"
    CHAPTER = "chapter"


class CatalogRecord(BaseModel):
    """A billable clinical procedure and its audit lead time."""

    model_config = ConfigDict(frozen=True)

    code: str
    procedure_name: Optional[str] = None
    terminology_label: Optional[str] = None
    subgroup: Optional[str] = None
    group: Optional[str] = None
    chapter: Optional[str] = None
    audit_lead_days: Optional[int] = None

    def field_value(self, field: CatalogField) -> Optional[str]:
        return getattr(self, field.value)


class MatchResult(BaseModel):
    """Best catalog match for a set of text fragments."""

    matched_text: str
    score: float
    audit_lead_days: Optional[str] = None
    code: Optional[str] = None
    field: Optional[CatalogField] = None
    fragment: Optional[str] = None


class AuthorizationOutcome(BaseModel):
    """Caller-facing interpretation of a match."""

    procedure: str
    requires_audit: bool
    audit_label: str
    response_date: Optional[date] = None
    score: float = 0.0
