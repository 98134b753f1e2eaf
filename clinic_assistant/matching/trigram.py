"""
Trigram similarity over folded text.

Words are runs of letters and digits. Each word is padded with two
leading spaces and one trailing space before being cut into three
character windows, and duplicates collapse into a set. Similarity is
the shared-trigram count over the size of the union, so it is symmetric
and bounded in [0, 1].
"""

import re

from clinic_assistant.utils import fold_text

_WORD_RE = re.compile(r"[^\W_]+")


def trigrams(text: str) -> frozenset[str]:
    """Return the trigram set of ``text`` after case and accent folding.

    Examples:
        >>> sorted(trigrams("Dó"))
        ['  d', ' do', 'do ']
    """
    grams: set[str] = set()
    for word in _WORD_RE.findall(fold_text(text)):
        padded = f"  {word} "
        for i in range(len(padded) - 2):
            grams.add(padded[i:i + 3])
    return frozenset(grams)


def set_similarity(left: frozenset[str], right: frozenset[str]) -> float:
    """Similarity of two precomputed trigram sets."""
    if not left or not right:
        return 0.0
    common = len(left & right)
    return common / (len(left) + len(right) - common)


def similarity(left: str, right: str) -> float:
    return set_similarity(trigrams(left), trigrams(right))
