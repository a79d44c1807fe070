"""nafbot/config.py

Runtime configuration loaded from environment variables / ``.env``.
"""

from __future__ import annotations

# Standard Library
from functools import lru_cache

# Third-Party Libraries
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Local Modules
from nafbot.memory import MAX_CONVERSATION_TURNS
from nafbot.models import Source
from nafbot.shaping import DEFAULT_MAX_TOKENS


class Settings(BaseSettings):
    """Runtime configuration.

    Attributes:
        ollama_host: Ollama API endpoint used for generated answers.
        ollama_model: Model tag passed to Ollama.
        max_conversation_turns: Turns kept when bounding a conversation.
        max_tokens: Default token budget for generated answers.
        temperature: Default sampling temperature for generated answers.
        pin_system_turn: Keep the persona turn through conversation bounding.
        persona_enabled: Prepend the persona system turn to every conversation.
        persona_organisation: Agency the assistant speaks for.
        persona_verbosity: 0.0 (terse) .. 1.0 (detailed).
        faq_path: CSV file with ``Question`` / ``Response`` columns.
        audit_webhook_url: If set, outcomes are POSTed here.
        audit_csv_path: If set (and no webhook), outcomes are appended here.
        audit_timeout: Seconds before an audit webhook call is abandoned.
        audit_sources: Answer sources that are audited.
        api_host: Bind address for the HTTP API.
        api_port: Bind port for the HTTP API.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ollama_host: str = Field(
        "http://localhost:11434",
        description="Ollama API endpoint.",
    )
    ollama_model: str = Field(
        "llama3.1:8b-instruct-q4_K_M",
        description="Ollama model tag used for generated answers.",
    )
    max_conversation_turns: int = Field(
        MAX_CONVERSATION_TURNS,
        ge=1,
        description="Most recent turns retained when bounding a conversation.",
    )
    max_tokens: int = Field(
        DEFAULT_MAX_TOKENS,
        ge=1,
        description="Default token budget for generated answers.",
    )
    temperature: float = Field(
        0.5,
        ge=0.0,
        le=2.0,
        description="Default sampling temperature.",
    )
    pin_system_turn: bool = Field(
        False,
        description=(
            "Keep the persona system turn at index 0 when a long conversation "
            "is truncated.  When false it rolls off like any other turn."
        ),
    )
    persona_enabled: bool = Field(True, description="Prepend the persona turn.")
    persona_organisation: str = Field(
        "NAFDAC",
        description="Agency the assistant answers for.",
    )
    persona_verbosity: float = Field(0.5, ge=0.0, le=1.0)
    faq_path: str = Field("data/faqs.csv", description="FAQ CSV location.")
    audit_webhook_url: str = Field("", description="Audit webhook URL.")
    audit_csv_path: str = Field("", description="Local CSV audit log.")
    audit_timeout: float = Field(5.0, gt=0)
    audit_sources: list[Source] = Field(
        default_factory=lambda: list(Source),
        description="Answer sources that trigger an audit record.",
    )
    api_host: str = Field("0.0.0.0")
    api_port: int = Field(8000)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
