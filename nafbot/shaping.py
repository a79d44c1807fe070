"""nafbot/shaping.py

Caps generated answers to an approximate word budget.
"""

from __future__ import annotations

# Standard Library
import math
from typing import Final

DEFAULT_MAX_TOKENS: Final[int] = 200
WORDS_PER_TOKEN: Final[float] = 0.75
# Words given up to make room for the truncation marker.
TRUNCATION_MARGIN: Final[int] = 5
ELLIPSIS: Final[str] = "..."


def word_budget(max_tokens: int) -> int:
    """Approximate number of words that fit in ``max_tokens`` tokens."""
    return math.floor(max_tokens * WORDS_PER_TOKEN)


def shape_response(answer: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> str:
    """Truncate an answer that exceeds the word budget for ``max_tokens``.

    An answer within budget is returned unchanged.  A longer answer keeps its
    first ``budget - 5`` words (never fewer than zero), joined by single
    spaces and followed by ``"..."``.

    Args:
        answer: Generated answer text.
        max_tokens: Token budget the answer was generated under.

    Returns:
        The original or truncated answer.
    """
    max_words = word_budget(max_tokens)
    words = answer.split()
    if len(words) <= max_words:
        return answer

    keep = max(max_words - TRUNCATION_MARGIN, 0)
    return " ".join(words[:keep]) + ELLIPSIS
