"""nafbot/text.py

Text canonicalisation shared by every FAQ resolver.
"""

from __future__ import annotations

# Standard Library
import re
from typing import Final

# Anything that is neither a word character nor whitespace.
_NON_WORD: Final[re.Pattern[str]] = re.compile(r"[^\w\s]")
_WHITESPACE: Final[re.Pattern[str]] = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Canonicalise text for comparison.

    The text is lower-cased, punctuation is removed, whitespace runs collapse
    to a single space and the result is trimmed.  Idempotent.

    Args:
        text: Raw text.  ``None`` is treated as empty.

    Returns:
        The normalised string (possibly empty).
    """
    if not text:
        return ""
    # Lower-case first: some lower-case mappings emit combining marks that the
    # punctuation pass would otherwise only strip on a second call.
    stripped = _NON_WORD.sub("", text.lower())
    return _WHITESPACE.sub(" ", stripped).strip()


def tokenize(text: str) -> frozenset[str]:
    """Return the set of unique words in the normalised form of ``text``."""
    return frozenset(normalize_text(text).split())
