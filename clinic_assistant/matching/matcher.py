"""
Procedure matcher.

Maps noisy lines of referral text to the single best catalog entry.
Every (fragment, field, record) triple that passes the candidate gate
is scored and the global maximum wins, so a later fragment can beat an
earlier one when its text matches more cleanly.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from clinic_assistant.config import MatcherConfig, settings
from clinic_assistant.matching.fulltext import WeightedDocument, parse_query
from clinic_assistant.matching.trigram import set_similarity, trigrams
from clinic_assistant.schemas.catalog_schema import CatalogField, CatalogRecord, MatchResult
from clinic_assistant.tools.catalog import ProcedureCatalog

logger = logging.getLogger(__name__)

# Fields eligible for the hybrid similarity / relevance score
HYBRID_FIELDS = frozenset({CatalogField.PROCEDURE_NAME, CatalogField.TERMINOLOGY_LABEL})

FIELD_ORDER: tuple[CatalogField, ...] = tuple(CatalogField)


@dataclass(frozen=True)
class _IndexedField:
    field: CatalogField
    text: str
    grams: frozenset[str]


@dataclass(frozen=True)
class _IndexedRecord:
    record: CatalogRecord
    fields: tuple[_IndexedField, ...]
    document: WeightedDocument


@dataclass(frozen=True)
class Candidate:
    """A scored (record, field, fragment) triple."""

    record: CatalogRecord
    field: CatalogField
    text: str
    fragment: str
    score: float

    def to_result(self) -> MatchResult:
        audit = self.record.audit_lead_days
        return MatchResult(
            matched_text=self.text,
            score=self.score,
            audit_lead_days=None if audit is None else str(audit),
            code=self.record.code,
            field=self.field,
            fragment=self.fragment,
        )


class ProcedureMatcher:
    """Trigram plus weighted full-text matcher over a procedure catalog."""

    def __init__(self, catalog: ProcedureCatalog, config: Optional[MatcherConfig] = None) -> None:
        self._catalog = catalog
        self._config = config or settings.matcher
        self._index: list[_IndexedRecord] = []
        self.refresh()

    def refresh(self) -> None:
        """Rebuild the in-memory index from the catalog."""
        index = []
        for record in self._catalog.records():
            fields = []
            for catalog_field in FIELD_ORDER:
                value = record.field_value(catalog_field)
                if value is None or not value.strip():
                    continue
                fields.append(_IndexedField(catalog_field, value, trigrams(value)))
            index.append(_IndexedRecord(record, tuple(fields), WeightedDocument.from_record(record)))
        self._index = index
        logger.info("Indexed %d catalog records", len(index))

    def _candidates(self, fragment: str) -> Iterable[Candidate]:
        query_grams = trigrams(fragment)
        terms = parse_query(fragment)
        threshold = self._config.similarity_threshold
        weight = self._config.relevance_weight
        for entry in self._index:
            text_match = entry.document.matches(terms)
            relevance = weight * entry.document.rank(terms) if text_match else 0.0
            for indexed in entry.fields:
                sim = set_similarity(indexed.grams, query_grams)
                if indexed.field in HYBRID_FIELDS:
                    if sim < threshold and not text_match:
                        continue
                    score = max(sim, relevance)
                else:
                    if sim < threshold:
                        continue
                    score = sim
                yield Candidate(entry.record, indexed.field, indexed.text, fragment, score)

    def search(self, fragment: str, limit: int = 20) -> list[Candidate]:
        """Return the gated candidates for one fragment, best first.

        Equal scores are ordered by field name.
        """
        fragment = fragment.strip()
        if not fragment:
            return []
        ranked = sorted(
            self._candidates(fragment),
            key=lambda c: (-c.score, c.field.value),
        )
        return ranked[:limit]

    def best_match(self, fragments: Sequence[str]) -> Optional[MatchResult]:
        """Return the highest-scoring candidate across all fragments, or None.

        Blank fragments are discarded. Ties keep the first candidate found.
        """
        cleaned = [f.strip() for f in fragments if f and f.strip()]
        if not cleaned:
            logger.info("No usable fragments to match")
            return None
        best: Optional[Candidate] = None
        for fragment in cleaned:
            for candidate in self._candidates(fragment):
                if best is None or candidate.score > best.score:
                    best = candidate
        if best is None:
            logger.info("No catalog entry passed the gate for %d fragments", len(cleaned))
            return None
        logger.info(
            "Matched '%s' (%s, score %.4f) from fragment '%s'",
            best.text, best.field.value, best.score, best.fragment,
        )
        return best.to_result()
