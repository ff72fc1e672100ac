from __future__ import annotations

import math
import re
import unicodedata

_WHITESPACE = re.compile(r"\s+")
_DOUBLED_QUESTION = re.compile(r"\?{2,}")
_REPLACEMENT_CHAR = "\ufffd"


def normalize_number(text: str | None) -> float:
    """Convert a locale-formatted numeric string to float.

    With a comma present, the comma is the decimal separator and every
    period is a thousands separator ("1.234,56" -> 1234.56). Otherwise the
    text already uses a period as decimal separator.
    Returns 0.0 for empty or unparseable input; never raises.
    """
    if not text:
        return 0.0
    normalized = _WHITESPACE.sub("", text)
    if "," in normalized:
        normalized = normalized.replace(".", "").replace(",", ".", 1)
    try:
        value = float(normalized)
    except ValueError:
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def sanitize_text(text: str | None) -> str:
    """Clean a text field corrupted by an encoding mismatch.

    Strips diacritics (NFKD + drop combining marks), the Unicode replacement
    character and runs of "??" left by failed transliteration. Idempotent.
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    cleaned = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    cleaned = cleaned.replace(_REPLACEMENT_CHAR, "")
    cleaned = _DOUBLED_QUESTION.sub("", cleaned)
    return cleaned.strip()
