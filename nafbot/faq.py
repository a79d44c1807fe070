"""nafbot/faq.py

FAQ loading and the two FAQ resolvers that run before any model call.

Exposed interfaces:
  RELEVANCE_THRESHOLD : minimum score for a relevance match
  KEYWORD_BONUS       : score added when the query names a critical keyword
  find_exact_match()  : first FAQ whose question is contained in the message
  find_relevant_match(): best token-overlap FAQ, gated by threshold and topic
  load_faqs() / CsvFaqSource: CSV-backed FAQ source, re-read per request
"""

from __future__ import annotations

# Standard Library
import csv
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Final, Protocol

# Local Modules
from nafbot.models import FAQEntry, MatchResult
from nafbot.text import normalize_text, tokenize

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Relevance constants
# ---------------------------------------------------------------------------

RELEVANCE_THRESHOLD: Final[float] = 0.7
"""Minimum overlap score (bonus included) for a relevance match."""

KEYWORD_BONUS: Final[float] = 0.1
"""Added once to every candidate's score when the query names a critical keyword."""

CRITICAL_KEYWORDS: Final[frozenset[str]] = frozenset(
    {"drug", "registration", "approval", "guideline"}
)

ALLOWED_TOPICS: Final[frozenset[str]] = frozenset(
    {"drug", "regulation", "health", "approval"}
)
"""At least one of these must appear in a relevance-matched answer."""

EXACT_MATCH_SCORE: Final[float] = 1.0


# ---------------------------------------------------------------------------
# Exact match
# ---------------------------------------------------------------------------


def find_exact_match(message: str, faqs: Iterable[FAQEntry]) -> MatchResult | None:
    """Return the first FAQ whose normalised question appears in the message.

    FAQ order is the tie-break: the earliest matching entry wins.  Entries
    whose question normalises to an empty string are skipped, since an empty
    string is contained in every message.

    Args:
        message: Raw user message.
        faqs: FAQ entries in source order.

    Returns:
        A :class:`MatchResult` with score 1.0, or ``None``.
    """
    normalized_message = normalize_text(message)
    if not normalized_message:
        return None

    for faq in faqs:
        normalized_question = normalize_text(faq.question)
        if not normalized_question:
            continue
        if normalized_question in normalized_message:
            return MatchResult(response=faq.response, score=EXACT_MATCH_SCORE)

    return None


# ---------------------------------------------------------------------------
# Relevance match
# ---------------------------------------------------------------------------


def keyword_bonus(normalized_message: str) -> float:
    """Return :data:`KEYWORD_BONUS` if the message names a critical keyword."""
    if any(keyword in normalized_message for keyword in CRITICAL_KEYWORDS):
        return KEYWORD_BONUS
    return 0.0


def is_on_topic(response: str) -> bool:
    """Check that an answer mentions at least one allowed topic word."""
    normalized_response = normalize_text(response)
    return any(topic in normalized_response for topic in ALLOWED_TOPICS)


def score_question(message: str, question: str) -> float:
    """Score a FAQ question against a user message.

    ``|question words ∩ message words| / |question words|`` plus the keyword
    bonus.  Word order and repeated words in either text have no effect.

    Args:
        message: Raw user message.
        question: Raw FAQ question.

    Returns:
        The relevance score, ``>= 0``.  A question with no words scores only
        the bonus.
    """
    question_words = tokenize(question)
    message_words = tokenize(message)
    similarity = 0.0
    if question_words:
        similarity = len(question_words & message_words) / len(question_words)
    return similarity + keyword_bonus(normalize_text(message))


def find_relevant_match(
    message: str, faqs: Iterable[FAQEntry]
) -> MatchResult | None:
    """Return the best token-overlap FAQ answer, if it is trustworthy.

    The highest-scoring entry is kept; a later entry replaces it only with a
    strictly greater score.  The winner is returned when its score reaches
    :data:`RELEVANCE_THRESHOLD` *and* its answer is on topic.  An off-topic
    winner is suppressed rather than replaced by the runner-up.

    Args:
        message: Raw user message.
        faqs: FAQ entries in source order.

    Returns:
        A :class:`MatchResult` carrying the winning score, or ``None``.
    """
    message_words = tokenize(message)
    bonus = keyword_bonus(normalize_text(message))

    best: FAQEntry | None = None
    best_score = 0.0
    for faq in faqs:
        question_words = tokenize(faq.question)
        if not question_words:
            continue
        overlap = len(question_words & message_words)
        score = overlap / len(question_words) + bonus
        if best is None or score > best_score:
            best, best_score = faq, score

    if best is None or best_score < RELEVANCE_THRESHOLD:
        return None

    if not is_on_topic(best.response):
        logger.info(
            "Relevance match suppressed: off-topic answer (score=%.2f, question=%r)",
            best_score,
            best.question,
        )
        return None

    return MatchResult(response=best.response, score=best_score)


# ---------------------------------------------------------------------------
# FAQ source
# ---------------------------------------------------------------------------


class FaqSource(Protocol):
    """Supplies the FAQ set for one request."""

    def load(self) -> Sequence[FAQEntry]: ...


def _column(fieldnames: Sequence[str] | None, wanted: str) -> str | None:
    for name in fieldnames or []:
        if name and name.strip().lower() == wanted:
            return name
    return None


def load_faqs(path: str | Path) -> list[FAQEntry]:
    """Parse a ``Question,Response`` CSV file into FAQ entries.

    Header names are matched case-insensitively.  Rows with an empty question
    or response are skipped with a warning.

    Args:
        path: CSV file location.

    Returns:
        FAQ entries in file order.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the header lacks a question or response column.
    """
    csv_path = Path(path)
    with csv_path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        question_col = _column(reader.fieldnames, "question")
        response_col = _column(reader.fieldnames, "response")
        if question_col is None or response_col is None:
            raise ValueError(
                f"{csv_path} must have 'Question' and 'Response' columns, "
                f"found {reader.fieldnames}"
            )

        entries: list[FAQEntry] = []
        for line_no, row in enumerate(reader, start=2):
            question = (row.get(question_col) or "").strip()
            response = (row.get(response_col) or "").strip()
            if not question or not response:
                logger.warning("Skipping malformed FAQ row %d in %s", line_no, csv_path)
                continue
            entries.append(FAQEntry(question=question, response=response))

    logger.debug("Loaded %d FAQ entries from %s", len(entries), csv_path)
    return entries


class CsvFaqSource:
    """FAQ source backed by a CSV file, re-read on every :meth:`load`."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> list[FAQEntry]:
        return load_faqs(self.path)
