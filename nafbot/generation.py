"""nafbot/generation.py

Generation collaborator: turns a bounded conversation into answer text.
"""

from __future__ import annotations

# Standard Library
import logging
from collections.abc import Sequence
from typing import Any, Protocol

# Third-Party Libraries
from ollama import Client

# Local Modules
from nafbot.models import ChatTurn

logger = logging.getLogger(__name__)

EMPTY_RESPONSE_FALLBACK = "I apologize, but I couldn't generate a response."


class Generator(Protocol):
    """Anything that can answer a conversation.

    Implementations raise on transport or provider failure; the engine wraps
    the error as :class:`~nafbot.errors.GenerationFailure`.
    """

    def generate(
        self,
        turns: Sequence[ChatTurn],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str: ...


class OllamaGenerator:
    """Generator backed by a local Ollama instance."""

    def __init__(self, model: str, host: str) -> None:
        """Initialize the generator.

        Args:
            model: Ollama model tag.
            host: Ollama API endpoint.
        """
        self.model = model
        self.host = host
        self.client = Client(host=host)

    def generate(
        self,
        turns: Sequence[ChatTurn],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Send the conversation to Ollama and return the reply text.

        Args:
            turns: Bounded conversation, persona turn first if present.
            max_tokens: Passed to Ollama as ``num_predict``.
            temperature: Sampling temperature.

        Returns:
            The assistant reply, or a fixed apology if the model returned
            nothing.
        """
        messages: list[dict[str, Any]] = [turn.to_message() for turn in turns]
        logger.debug("Sending %d messages to %s", len(messages), self.model)

        response = self.client.chat(
            model=self.model,
            messages=messages,
            options={"temperature": temperature, "num_predict": max_tokens},
        )

        raw_msg = response["message"]
        # getattr covers ollama's pydantic Message; plain dicts fall through to .get
        content = (
            getattr(raw_msg, "content", None)
            or (raw_msg.get("content", "") if isinstance(raw_msg, dict) else "")
            or ""
        )
        if not content.strip():
            logger.warning("Empty response from %s", self.model)
            return EMPTY_RESPONSE_FALLBACK

        logger.debug("Received response from %s: %d chars", self.model, len(content))
        return content
