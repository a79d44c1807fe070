"""nafbot/chat.py

Resolution engine: answers a user message from the FAQ set when it can and
falls back to the language model when it cannot.

Pipeline (run exactly once per request, stopping at the first answer):

    START → EXACT_MATCH → RELEVANCE_MATCH → GENERATE → DONE

START prepends the persona turn, appends the user turn and bounds the
conversation.  GENERATE shapes the model's reply to the token budget.  After
DONE the outcome is handed to the audit sink on a background worker, so a slow
sink never delays the answer; audit problems are logged and never reach the
caller.
"""

from __future__ import annotations

# Standard Library
import logging
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

# Local Modules
from nafbot.audit import (
    AuditRecord,
    AuditSink,
    LoggingAuditSink,
    RequestCounter,
    build_audit_sink,
)
from nafbot.config import Settings
from nafbot.errors import GenerationFailure, InvalidRequest
from nafbot.faq import find_exact_match, find_relevant_match
from nafbot.generation import Generator, OllamaGenerator
from nafbot.memory import MAX_CONVERSATION_TURNS, bound_conversation, parse_turns
from nafbot.models import ChatTurn, FAQEntry, ResolutionOutcome, Role, Source
from nafbot.persona import Persona, PersonaManager
from nafbot.shaping import DEFAULT_MAX_TOKENS, shape_response

logger = logging.getLogger(__name__)


class ResolutionEngine:
    """Routes each user message through the FAQ resolvers and the model.

    The engine holds configuration and collaborators only.  Conversations and
    FAQ sets are supplied per call, so one engine can serve concurrent
    requests.
    """

    def __init__(
        self,
        generator: Generator,
        audit_sink: AuditSink | None = None,
        request_counter: RequestCounter | None = None,
        *,
        system_prompt: str | None = None,
        max_conversation_turns: int = MAX_CONVERSATION_TURNS,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = 0.5,
        pin_system_turn: bool = False,
        audit_sources: Iterable[Source] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            generator: Model collaborator used when no FAQ answers.
            audit_sink: Receives every audited outcome.  Defaults to
                :class:`LoggingAuditSink`.
            request_counter: Source of request ids.  A private counter is
                created when omitted.
            system_prompt: Persona turn content.  ``None`` disables it.
            max_conversation_turns: Bound applied to every conversation.
            max_tokens: Default token budget for generated answers.
            temperature: Default sampling temperature.
            pin_system_turn: Keep the persona turn through bounding.
            audit_sources: Sources that are audited.  Defaults to all.
        """
        if max_conversation_turns < 1:
            raise ValueError("max_conversation_turns must be >= 1")

        self.generator = generator
        self.audit_sink: AuditSink = audit_sink or LoggingAuditSink()
        self.request_counter = request_counter or RequestCounter()
        self.system_prompt = system_prompt
        self.max_conversation_turns = max_conversation_turns
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.pin_system_turn = pin_system_turn
        self.audit_sources: frozenset[Source] = frozenset(
            Source if audit_sources is None else audit_sources
        )
        # One worker keeps audit records in request order.
        self._audit_executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="nafbot-audit"
        )

        logger.info(
            "ResolutionEngine initialized: max_turns=%d, max_tokens=%d, "
            "temperature=%.2f, persona=%s, pin_system=%s",
            max_conversation_turns,
            max_tokens,
            temperature,
            system_prompt is not None,
            pin_system_turn,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        generator: Generator | None = None,
        audit_sink: AuditSink | None = None,
        request_counter: RequestCounter | None = None,
    ) -> "ResolutionEngine":
        """Build an engine from :class:`Settings`.

        Collaborators not passed in are built from the settings: an
        :class:`OllamaGenerator` and the sink chosen by
        :func:`~nafbot.audit.build_audit_sink`.
        """
        system_prompt = None
        if settings.persona_enabled:
            system_prompt = PersonaManager(
                Persona.from_settings(settings)
            ).generate_system_prompt()

        return cls(
            generator=generator
            or OllamaGenerator(model=settings.ollama_model, host=settings.ollama_host),
            audit_sink=audit_sink or build_audit_sink(settings),
            request_counter=request_counter,
            system_prompt=system_prompt,
            max_conversation_turns=settings.max_conversation_turns,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            pin_system_turn=settings.pin_system_turn,
            audit_sources=settings.audit_sources,
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def resolve(
        self,
        message: str | None,
        conversation: Iterable[Mapping[str, Any] | ChatTurn] | None = None,
        faqs: Sequence[FAQEntry] = (),
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        request_id: int | None = None,
    ) -> ResolutionOutcome:
        """Answer one user message.

        Args:
            message: The user's message.
            conversation: Prior turns in chronological order, as
                :class:`ChatTurn` objects or role/content dicts.  It may
                already end with ``message`` as a user turn.
            faqs: FAQ set for this request, in priority order.
            max_tokens: Token budget override for a generated answer.
            temperature: Sampling temperature override.
            request_id: Correlation id; drawn from the counter when omitted.

        Returns:
            The :class:`ResolutionOutcome`.

        Raises:
            InvalidRequest: If ``message`` is missing or blank.
            GenerationFailure: If the model call fails.
        """
        if message is None or not message.strip():
            raise InvalidRequest("Message content is required.")

        if request_id is None:
            request_id = self.request_counter.next_id()
        budget = self.max_tokens if max_tokens is None else max_tokens
        temp = self.temperature if temperature is None else temperature

        turns = self._prepare_conversation(message, conversation)
        logger.info(
            "[request %d] resolving message (%d chars, %d turns in context)",
            request_id,
            len(message),
            len(turns),
        )

        match = find_exact_match(message, faqs)
        if match is not None:
            outcome = self._finish(request_id, turns, match.response, Source.EXACT_FAQ)
        else:
            match = find_relevant_match(message, faqs)
            if match is not None:
                logger.debug("[request %d] relevance score %.2f", request_id, match.score)
                outcome = self._finish(
                    request_id, turns, match.response, Source.RELEVANT_FAQ
                )
            else:
                answer = self._generate(request_id, turns, budget, temp)
                outcome = self._finish(request_id, turns, answer, Source.GENERATED)

        logger.info("[request %d] answered from %s", request_id, outcome.source)
        self._audit(message, outcome)
        return outcome

    def _prepare_conversation(
        self,
        message: str,
        conversation: Iterable[Mapping[str, Any] | ChatTurn] | None,
    ) -> list[ChatTurn]:
        """Persona first, caller history, then the new user turn; bounded."""
        turns = parse_turns(conversation)

        if self.system_prompt is not None:
            turns = [turn for turn in turns if turn.role is not Role.SYSTEM]
            turns.insert(0, ChatTurn(role=Role.SYSTEM, content=self.system_prompt))

        # Clients may already have appended the new message to their history.
        if not (turns and turns[-1].role is Role.USER and turns[-1].content == message):
            turns.append(ChatTurn(role=Role.USER, content=message))

        return bound_conversation(
            turns, self.max_conversation_turns, pin_system=self.pin_system_turn
        )

    def _generate(
        self,
        request_id: int,
        turns: list[ChatTurn],
        max_tokens: int,
        temperature: float,
    ) -> str:
        try:
            answer = self.generator.generate(
                turns, max_tokens=max_tokens, temperature=temperature
            )
        except Exception as exc:
            logger.error("[request %d] generation failed: %s", request_id, exc, exc_info=True)
            raise GenerationFailure(f"Generation failed for request {request_id}") from exc
        return shape_response(answer, max_tokens)

    def _finish(
        self,
        request_id: int,
        turns: list[ChatTurn],
        answer: str,
        source: Source,
    ) -> ResolutionOutcome:
        conversation = bound_conversation(
            [*turns, ChatTurn(role=Role.ASSISTANT, content=answer)],
            self.max_conversation_turns,
            pin_system=self.pin_system_turn,
        )
        return ResolutionOutcome(
            answer=answer,
            source=source,
            conversation=conversation,
            request_id=request_id,
        )

    def _audit(self, message: str, outcome: ResolutionOutcome) -> None:
        if outcome.source not in self.audit_sources:
            return
        record = AuditRecord(
            request_id=outcome.request_id,
            message=message,
            answer=outcome.answer,
            source=outcome.source,
        )
        self._audit_executor.submit(self._record_audit, record)

    def _record_audit(self, record: AuditRecord) -> None:
        try:
            self.audit_sink.record(record)
        except Exception as exc:
            logger.warning(
                "[request %d] audit failed, answer unaffected: %s",
                record.request_id,
                exc,
                exc_info=True,
            )

    def close(self, wait: bool = True) -> None:
        """Stop the audit worker, by default after pending records are written."""
        self._audit_executor.shutdown(wait=wait)
