"""tests/test_faq.py

Unit tests for the FAQ resolvers and CSV loader (nafbot/faq.py).
"""

from __future__ import annotations

# Standard Library
import logging
from pathlib import Path

# Third-Party Libraries
import pytest

# Local Modules
from nafbot.faq import (
    KEYWORD_BONUS,
    RELEVANCE_THRESHOLD,
    CsvFaqSource,
    find_exact_match,
    find_relevant_match,
    is_on_topic,
    load_faqs,
    score_question,
)
from nafbot.models import FAQEntry


class TestFindExactMatch:
    """Test suite for the substring-containment resolver."""

    def test_matches_case_and_punctuation_insensitively(self, nafdac_faq: FAQEntry) -> None:
        """'what is nafdac?' matches the question 'What is NAFDAC?'."""
        result = find_exact_match("what is nafdac?", [nafdac_faq])
        assert result is not None
        assert result.response == nafdac_faq.response
        assert result.score == 1.0

    def test_question_contained_in_longer_message(self, nafdac_faq: FAQEntry) -> None:
        """The question only has to appear somewhere in the message."""
        result = find_exact_match("Hi there, what is NAFDAC exactly?", [nafdac_faq])
        assert result is not None

    def test_no_match(self, sample_faqs: list[FAQEntry]) -> None:
        """Unrelated messages return None."""
        assert find_exact_match("opening hours in Lagos", sample_faqs) is None

    def test_first_match_wins(self) -> None:
        """When several questions are contained, the earliest entry wins."""
        faqs = [
            FAQEntry(question="drug approval", response="first"),
            FAQEntry(question="approval", response="second"),
        ]
        result = find_exact_match("how does drug approval work", faqs)
        assert result is not None
        assert result.response == "first"

    def test_order_decides_between_overlapping_questions(self) -> None:
        """Reversing FAQ order reverses the winner."""
        faqs = [
            FAQEntry(question="approval", response="short"),
            FAQEntry(question="drug approval", response="long"),
        ]
        result = find_exact_match("how does drug approval work", faqs)
        assert result is not None
        assert result.response == "short"

    @pytest.mark.parametrize("question", ["", "   ", "?!", "..."])
    def test_empty_questions_are_skipped(self, question: str) -> None:
        """Questions that normalise to empty never match."""
        faqs = [
            FAQEntry(question=question, response="bogus"),
            FAQEntry(question="what is nafdac", response="real"),
        ]
        assert find_exact_match("anything at all", faqs[:1]) is None
        result = find_exact_match("what is nafdac", faqs)
        assert result is not None
        assert result.response == "real"

    def test_empty_message(self, sample_faqs: list[FAQEntry]) -> None:
        """A message that normalises to empty matches nothing."""
        assert find_exact_match("???", sample_faqs) is None

    def test_empty_faq_set(self) -> None:
        """No FAQs, no match."""
        assert find_exact_match("what is nafdac", []) is None


class TestScoreQuestion:
    """Test suite for relevance scoring."""

    def test_overlap_ratio(self) -> None:
        """Score is overlap divided by the number of question words."""
        assert score_question("process for registering", "registration process steps") == pytest.approx(1 / 3)

    def test_keyword_bonus(self) -> None:
        """A critical keyword in the message adds the bonus."""
        score = score_question("tell me about drug registration approval steps", "drug registration process")
        assert score == pytest.approx(2 / 3 + KEYWORD_BONUS)

    def test_bonus_applies_without_overlap(self) -> None:
        """The bonus depends on the message only."""
        assert score_question("guideline", "opening hours") == pytest.approx(KEYWORD_BONUS)

    def test_empty_question_scores_only_bonus(self) -> None:
        """An empty question has similarity 0 rather than dividing by zero."""
        assert score_question("hello", "") == 0.0
        assert score_question("drug", "?!") == pytest.approx(KEYWORD_BONUS)

    @pytest.mark.parametrize(
        "message",
        [
            "steps registration drug process",
            "process process drug drug registration steps",
            "DRUG, registration; process... steps!",
        ],
    )
    def test_order_and_duplicate_insensitive(self, message: str) -> None:
        """Reordering or repeating words in the message leaves the score unchanged."""
        baseline = score_question("drug registration process steps", "drug registration process")
        assert score_question(message, "drug registration process") == pytest.approx(baseline)


class TestFindRelevantMatch:
    """Test suite for the token-overlap resolver."""

    def test_match_after_keyword_bonus(self, registration_faq: FAQEntry) -> None:
        """2/3 overlap plus the 0.1 bonus clears the 0.7 threshold."""
        result = find_relevant_match(
            "tell me about drug registration approval steps", [registration_faq]
        )
        assert result is not None
        assert result.response == registration_faq.response
        assert result.score >= RELEVANCE_THRESHOLD

    def test_below_threshold(self) -> None:
        """Without the bonus 2/3 overlap is not enough."""
        faq = FAQEntry(question="import permit process", response="Health products need a permit.")
        assert find_relevant_match("what is the permit process", [faq]) is None

    def test_off_topic_answer_is_suppressed(self) -> None:
        """A high score does not rescue an answer with no allowed topic word."""
        faq = FAQEntry(question="drug registration process", response="Please call our office.")
        assert score_question("drug registration process", faq.question) >= RELEVANCE_THRESHOLD
        assert find_relevant_match("drug registration process", [faq]) is None

    def test_off_topic_winner_not_replaced_by_runner_up(self) -> None:
        """The post-filter applies to the best entry only."""
        faqs = [
            FAQEntry(question="drug registration process", response="Please call our office."),
            FAQEntry(question="drug registration fees", response="Drug fees are listed online."),
        ]
        assert find_relevant_match("drug registration process", faqs) is None

    def test_best_score_wins(self) -> None:
        """A later entry with a strictly higher score replaces the earlier one."""
        faqs = [
            FAQEntry(question="drug import licence renewal", response="drug: renewal"),
            FAQEntry(question="drug import licence", response="drug: licence"),
        ]
        result = find_relevant_match("how do I get a drug import licence", faqs)
        assert result is not None
        assert result.response == "drug: licence"

    def test_ties_keep_earliest(self) -> None:
        """Equal scores keep the first entry seen."""
        faqs = [
            FAQEntry(question="drug approval timeline", response="drug answer one"),
            FAQEntry(question="timeline drug approval", response="drug answer two"),
        ]
        result = find_relevant_match("drug approval timeline please", faqs)
        assert result is not None
        assert result.response == "drug answer one"

    def test_skips_empty_questions(self) -> None:
        """Entries with no question words are ignored."""
        faqs = [FAQEntry(question="", response="health")]
        assert find_relevant_match("drug approval", faqs) is None

    def test_no_faqs(self) -> None:
        """An empty FAQ set never matches."""
        assert find_relevant_match("drug approval", []) is None

    def test_off_topic_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Suppression is logged for operators."""
        faq = FAQEntry(question="drug registration process", response="Call us.")
        with caplog.at_level(logging.INFO, logger="nafbot.faq"):
            find_relevant_match("drug registration process", [faq])
        assert "suppressed" in caplog.text


class TestIsOnTopic:
    """Test suite for the topical post-filter."""

    @pytest.mark.parametrize(
        "response,expected",
        [
            ("NAFDAC is Nigeria's drug regulator.", True),
            ("Public HEALTH matters.", True),
            ("Regulation applies to all imports.", True),
            ("Approval takes 90 days.", True),
            ("Please call our office.", False),
            ("", False),
        ],
    )
    def test_allowed_topics(self, response: str, expected: bool) -> None:
        """At least one allowed topic word must appear."""
        assert is_on_topic(response) is expected


class TestLoadFaqs:
    """Test suite for the CSV FAQ source."""

    def test_loads_rows_in_order(self, tmp_path: Path) -> None:
        """Rows become FAQ entries in file order."""
        path = tmp_path / "faqs.csv"
        path.write_text(
            'Question,Response\nWhat is NAFDAC?,"NAFDAC is Nigeria\'s drug regulator."\n'
            "How do I register?,Use the portal.\n",
            encoding="utf-8",
        )
        faqs = load_faqs(path)
        assert faqs == [
            FAQEntry("What is NAFDAC?", "NAFDAC is Nigeria's drug regulator."),
            FAQEntry("How do I register?", "Use the portal."),
        ]

    def test_header_case_insensitive(self, tmp_path: Path) -> None:
        """Lower-case and padded headers are accepted."""
        path = tmp_path / "faqs.csv"
        path.write_text(" question , RESPONSE \nq1,r1\n", encoding="utf-8")
        assert load_faqs(path) == [FAQEntry("q1", "r1")]

    def test_skips_malformed_rows(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        """Rows missing a question or response are skipped with a warning."""
        path = tmp_path / "faqs.csv"
        path.write_text("Question,Response\n,orphan answer\nq2,\nq3,r3\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="nafbot.faq"):
            faqs = load_faqs(path)
        assert faqs == [FAQEntry("q3", "r3")]
        assert caplog.text.count("Skipping malformed FAQ row") == 2

    def test_missing_columns(self, tmp_path: Path) -> None:
        """A file without the expected header is rejected."""
        path = tmp_path / "faqs.csv"
        path.write_text("Q,A\nq,a\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Question"):
            load_faqs(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_faqs(tmp_path / "nope.csv")

    def test_source_rereads_file(self, tmp_path: Path) -> None:
        """CsvFaqSource picks up edits between loads."""
        path = tmp_path / "faqs.csv"
        path.write_text("Question,Response\nq1,r1\n", encoding="utf-8")
        source = CsvFaqSource(path)
        assert len(source.load()) == 1
        path.write_text("Question,Response\nq1,r1\nq2,r2\n", encoding="utf-8")
        assert len(source.load()) == 2

    def test_bundled_faq_file(self) -> None:
        """The shipped FAQ file parses and answers the NAFDAC question."""
        faqs = load_faqs(Path(__file__).resolve().parents[1] / "data" / "faqs.csv")
        assert faqs
        result = find_exact_match("What is NAFDAC?", faqs)
        assert result is not None
        assert "drug regulator" in result.response
