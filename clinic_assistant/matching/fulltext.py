"""
Weighted full-text relevance.

A catalog record is indexed as a single document: each field's words are
folded, stemmed with the Portuguese Snowball stemmer and stored with
their word position and the weight of the field they came from. Fields
are concatenated in weight order, each one's positions continuing after
the previous field's last lexeme, and stopwords still consume a position.

Queries are parsed web-search style, so every term must be present for
the document to match. A single-term query is ranked from the weights of
the term's occurrences; a multi-term query is ranked by how close its
terms occur to each other.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

import snowballstemmer

from clinic_assistant.schemas.catalog_schema import CatalogField, CatalogRecord
from clinic_assistant.utils import fold_text

_WORD_RE = re.compile(r"[^\W_]+")

_STEMMER = snowballstemmer.stemmer("portuguese")

FIELD_WEIGHTS: dict[CatalogField, float] = {
    CatalogField.PROCEDURE_NAME: 1.0,
    CatalogField.TERMINOLOGY_LABEL: 1.0,
    CatalogField.SUBGROUP: 0.4,
    CatalogField.GROUP: 0.2,
    CatalogField.CHAPTER: 0.1,
}

# Normalizes the harmonic position decay (sum of 1/n^2).
_RANK_NORMALIZER = 1.64493406685

# Pairs further apart than this contribute nothing to proximity rank.
MAX_PROXIMITY_DISTANCE = 100

# Floor returned when a multi-term query finds no scorable pair.
_EMPTY_PROXIMITY_RANK = 1e-20

# Folded Portuguese stopwords, plus the English ones referral text often mixes in
PORTUGUESE_STOPWORDS: frozenset[str] = frozenset({
    "a", "ao", "aos", "as", "com", "como", "da", "das", "de", "do", "dos",
    "e", "em", "entre", "esta", "este", "isso", "na", "nas", "no", "nos",
    "o", "os", "ou", "para", "pela", "pelas", "pelo", "pelos", "por",
    "que", "se", "sem", "seu", "sua", "um", "uma", "the", "of", "and",
})


def _positioned(text: str) -> list[tuple[int, Optional[str]]]:
    """1-based word positions with their lexeme, or None for a stopword."""
    result = []
    for position, word in enumerate(_WORD_RE.findall(fold_text(text)), start=1):
        lexeme = None if word in PORTUGUESE_STOPWORDS else _STEMMER.stemWord(word)
        result.append((position, lexeme))
    return result


def lexemes(text: str) -> list[str]:
    """Fold and stem ``text``, returning its lexemes in order without stopwords."""
    return [lexeme for _, lexeme in _positioned(text) if lexeme is not None]


def parse_query(text: str) -> tuple[str, ...]:
    """Return the distinct query lexemes in order of first appearance."""
    return tuple(dict.fromkeys(lexemes(text)))


def word_distance(distance: int) -> float:
    """Proximity factor for two occurrences ``distance`` words apart."""
    if distance > MAX_PROXIMITY_DISTANCE:
        return 1e-30
    return 1.0 / (1.005 + 0.05 * math.exp(distance / 1.5 - 2))


@dataclass
class WeightedDocument:
    """Lexeme occurrences as (position, weight) pairs, in position order."""

    postings: dict[str, list[tuple[int, float]]] = field(default_factory=dict)
    max_position: int = 0

    @classmethod
    def from_record(cls, record: CatalogRecord) -> "WeightedDocument":
        doc = cls()
        for catalog_field, weight in FIELD_WEIGHTS.items():
            doc.add_text(record.field_value(catalog_field), weight)
        return doc

    def add_text(self, text: Optional[str], weight: float) -> None:
        """Append ``text`` after the last stored lexeme."""
        if not text:
            return
        offset = self.max_position
        for position, lexeme in _positioned(text):
            if lexeme is None:
                continue
            self.postings.setdefault(lexeme, []).append((offset + position, weight))
            self.max_position = max(self.max_position, offset + position)

    def matches(self, terms: Iterable[str]) -> bool:
        terms = tuple(terms)
        return bool(terms) and all(t in self.postings for t in terms)

    def rank(self, terms: Iterable[str]) -> float:
        """Relevance of the document for the query ``terms``, in [0, 1]."""
        terms = tuple(dict.fromkeys(terms))
        if len(terms) < 2:
            return self._rank_or(terms)
        return self._rank_and(terms)

    def _rank_or(self, terms: tuple[str, ...]) -> float:
        """Average per-term relevance.

        Each term scores its occurrences with harmonically decaying
        weights, with the heaviest occurrence counted at full weight.
        """
        if not terms:
            return 0.0
        total = 0.0
        for term in terms:
            occurrences = self.postings.get(term)
            if not occurrences:
                continue
            decayed = 0.0
            best_weight, best_index = -1.0, 0
            for index, (_, weight) in enumerate(occurrences):
                decayed += weight / (index + 1) ** 2
                if weight > best_weight:
                    best_weight, best_index = weight, index
            total += (best_weight + decayed - best_weight / (best_index + 1) ** 2) / _RANK_NORMALIZER
        return total / len(terms)

    def _rank_and(self, terms: tuple[str, ...]) -> float:
        """Proximity relevance over every pair of occurrences of distinct terms.

        Each pair contributes ``sqrt(w1 * w2 * word_distance(d))`` and the
        contributions combine as independent probabilities.
        """
        rank = -1.0
        found = [self.postings[t] for t in terms if t in self.postings]
        for i, current in enumerate(found):
            for previous in found[:i]:
                for position, weight in current:
                    for other_position, other_weight in previous:
                        distance = abs(position - other_position)
                        if distance == 0:
                            continue
                        pair = math.sqrt(weight * other_weight * word_distance(distance))
                        rank = pair if rank < 0 else 1.0 - (1.0 - rank) * (1.0 - pair)
        return rank if rank >= 0 else _EMPTY_PROXIMITY_RANK
