"""tests/test_persona.py

Unit tests for the persona system prompt (nafbot/persona.py).
"""

from __future__ import annotations

# Third-Party Libraries
import pytest

# Local Modules
from nafbot.config import Settings
from nafbot.persona import Persona, PersonaManager


class TestPersonaManager:
    """Test suite for PersonaManager."""

    def test_mentions_organisation(self) -> None:
        """The organisation name appears in the prompt and the guardrail."""
        prompt = PersonaManager(Persona(organisation="NAFDAC", verbosity=0.5)).generate_system_prompt()
        assert prompt.count("NAFDAC") >= 2
        assert "Never invent" in prompt

    @pytest.mark.parametrize(
        "verbosity,phrase",
        [
            (0.9, "walk through each step"),
            (0.5, "short and to the point"),
            (0.1, "as few sentences as possible"),
        ],
    )
    def test_verbosity_traits(self, verbosity: float, phrase: str) -> None:
        """Verbosity selects exactly one length instruction."""
        prompt = PersonaManager(Persona(organisation="X", verbosity=verbosity)).generate_system_prompt()
        assert phrase in prompt

    def test_from_settings(self) -> None:
        """Persona fields come from the persona_* settings."""
        persona = Persona.from_settings(
            Settings(persona_organisation="FDA", persona_verbosity=0.2)
        )
        assert persona == Persona(organisation="FDA", verbosity=0.2)
