"""tests/conftest.py

Pytest configuration and shared fixtures for the nafbot test suite.
"""

from __future__ import annotations

# Standard Library
from unittest.mock import Mock

# Third-Party Libraries
import pytest

# Local Modules
from nafbot.models import ChatTurn, FAQEntry, Role


@pytest.fixture
def nafdac_faq() -> FAQEntry:
    """The FAQ entry used by the exact-match scenario."""
    return FAQEntry(
        question="What is NAFDAC?",
        response="NAFDAC is Nigeria's drug regulator.",
    )


@pytest.fixture
def registration_faq() -> FAQEntry:
    """An on-topic FAQ entry reachable only by relevance scoring."""
    return FAQEntry(
        question="drug registration process",
        response="The drug registration process has five stages.",
    )


@pytest.fixture
def sample_faqs(nafdac_faq: FAQEntry, registration_faq: FAQEntry) -> list[FAQEntry]:
    """A small FAQ set in priority order."""
    return [
        nafdac_faq,
        registration_faq,
        FAQEntry(
            question="How do I report a fake product?",
            response="Use the pharmacovigilance portal; the drug safety team will follow up.",
        ),
    ]


@pytest.fixture
def mock_generator() -> Mock:
    """Create a mock generation collaborator.

    Returns:
        Mock whose ``generate`` returns a fixed answer.
    """
    generator = Mock()
    generator.generate.return_value = "This is a generated answer."
    return generator


@pytest.fixture
def mock_audit_sink() -> Mock:
    """Create a mock audit sink that records calls."""
    return Mock()


@pytest.fixture
def mock_ollama_client() -> Mock:
    """Create a mock Ollama client.

    Returns:
        Mock Ollama client with a pre-configured chat response.
    """
    mock_client = Mock()
    mock_client.chat.return_value = {
        "message": {
            "role": "assistant",
            "content": "This is a test response from the mock LLM.",
        },
        "model": "llama3.1:8b-instruct-q4_K_M",
        "done": True,
    }
    return mock_client


@pytest.fixture
def sample_turns() -> list[ChatTurn]:
    """Create a short prior conversation."""
    return [
        ChatTurn(role=Role.USER, content="Hello!"),
        ChatTurn(role=Role.ASSISTANT, content="Hi there! How can I help you?"),
        ChatTurn(role=Role.USER, content="Do you cover cosmetics?"),
        ChatTurn(role=Role.ASSISTANT, content="Yes, cosmetics are regulated too."),
    ]
