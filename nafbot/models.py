"""nafbot/models.py

Value types passed between the resolvers, the engine and its collaborators.
"""

from __future__ import annotations

# Standard Library
import dataclasses
from enum import StrEnum


class Role(StrEnum):
    """Speaker of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Source(StrEnum):
    """Which tier of the pipeline produced an answer."""

    EXACT_FAQ = "exact-faq"
    RELEVANT_FAQ = "relevant-faq"
    GENERATED = "generated"


@dataclasses.dataclass(frozen=True, slots=True)
class FAQEntry:
    """A stored question/answer pair."""

    question: str
    response: str


@dataclasses.dataclass(frozen=True, slots=True)
class ChatTurn:
    """One turn of a conversation."""

    role: Role
    content: str

    def to_message(self) -> dict[str, str]:
        """Render as an Ollama / OpenAI-style ``{"role", "content"}`` dict."""
        return {"role": str(self.role), "content": self.content}


@dataclasses.dataclass(frozen=True, slots=True)
class MatchResult:
    """A successful FAQ lookup.

    Attributes:
        response: The FAQ answer text.
        score: Confidence, ``>= 0``.  Exact matches report ``1.0``; relevance
            matches report the overlap score including any keyword bonus.
    """

    response: str
    score: float


@dataclasses.dataclass(slots=True)
class ResolutionOutcome:
    """Final result of one pass through the resolution pipeline.

    Attributes:
        answer: Text returned to the user.
        source: Pipeline tier that produced ``answer``.
        conversation: Bounded conversation including the new user and
            assistant turns.
        request_id: Correlation id used for auditing.
    """

    answer: str
    source: Source
    conversation: list[ChatTurn]
    request_id: int
