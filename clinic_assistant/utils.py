"""Shared text helpers used by the dialog engine and the matcher."""

import re
import unicodedata
from typing import Optional


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("(11) 99999-9999")
        '11999999999'
        >>> normalize_phone("+55 (11) 99999-9999")
        '+5511999999999'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def strip_accents(value: str) -> str:
    """Remove combining diacritics: ``"Ressonância"`` -> ``"Ressonancia"``."""
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def fold_text(value: str) -> str:
    """Lowercase and strip diacritics, the matcher's canonical form."""
    return strip_accents(value).lower()


def parse_menu_index(value: str, size: int) -> Optional[int]:
    """Parse a 1-based menu choice into a 0-based index.

    Returns None for non-numeric input or a number outside ``1..size``.
    Superscripts and other digit-like characters that ``int`` rejects
    count as non-numeric.
    """
    text = value.strip()
    if not text.isdecimal():
        return None
    number = int(text)
    if number < 1 or number > size:
        return None
    return number - 1
