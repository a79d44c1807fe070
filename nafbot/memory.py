"""nafbot/memory.py

Conversation bounding and intake.

The caller owns the conversation and sends it with every request; the server
keeps nothing between requests.  Before a conversation reaches the model it
is cut down to its most recent ``max_turns`` turns.
"""

from __future__ import annotations

# Standard Library
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Final

# Local Modules
from nafbot.models import ChatTurn, Role

logger = logging.getLogger(__name__)

MAX_CONVERSATION_TURNS: Final[int] = 512


def bound_conversation(
    turns: Sequence[ChatTurn],
    max_turns: int = MAX_CONVERSATION_TURNS,
    *,
    pin_system: bool = False,
) -> list[ChatTurn]:
    """Keep only the most recent ``max_turns`` turns, oldest dropped first.

    Without ``pin_system`` a leading system turn is treated like any other
    turn and rolls off once the conversation is long enough.  With
    ``pin_system`` it stays at index 0 and the remaining ``max_turns - 1``
    slots hold the most recent other turns.

    Args:
        turns: Conversation in chronological order.
        max_turns: Maximum number of turns to return.
        pin_system: Keep a leading system turn through truncation.

    Returns:
        A new list; equal to ``turns`` when it already fits.

    Raises:
        ValueError: If ``max_turns`` is less than 1.
    """
    if max_turns < 1:
        raise ValueError(f"max_turns must be >= 1, got {max_turns}")

    if len(turns) <= max_turns:
        return list(turns)

    if pin_system and turns[0].role is Role.SYSTEM:
        if max_turns == 1:
            return [turns[0]]
        return [turns[0], *turns[len(turns) - (max_turns - 1):]]

    return list(turns[len(turns) - max_turns:])


def parse_turns(raw_turns: Iterable[Mapping[str, Any] | ChatTurn] | None) -> list[ChatTurn]:
    """Convert caller-supplied role/content dicts into :class:`ChatTurn` objects.

    Unknown roles are dropped with a warning; ``None`` content becomes an
    empty string and other non-string content is coerced with ``str``.

    Args:
        raw_turns: Turns as sent by a client, or ``None``.

    Returns:
        Parsed turns in their original order.
    """
    turns: list[ChatTurn] = []
    for raw in raw_turns or []:
        if isinstance(raw, ChatTurn):
            turns.append(raw)
            continue
        role_value = str(raw.get("role") or "").strip().lower()
        try:
            role = Role(role_value)
        except ValueError:
            logger.warning("Dropping conversation turn with unknown role %r", role_value)
            continue
        content = raw.get("content")
        turns.append(ChatTurn(role=role, content="" if content is None else str(content)))
    return turns
