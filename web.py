"""web.py

Gradio web interface for nafbot.
Serves a chat page at 0.0.0.0:7860 backed by the same ResolutionEngine as the
HTTP API.  The Gradio chat history is the conversation; it is sent with every
message and replaced by the bounded conversation the engine returns.

Exposed interfaces:
    demo (gr.Blocks): The Gradio application.  Launch via ``python web.py``.
"""

from __future__ import annotations

# Standard Library
import logging
from typing import Any

# Third-Party Libraries
import gradio as gr
from dotenv import load_dotenv

# Local Modules
from nafbot.chat import ResolutionEngine
from nafbot.config import get_settings
from nafbot.errors import GenerationFailure
from nafbot.faq import CsvFaqSource
from nafbot.models import Role

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

GENERIC_ERROR = "An error occurred while processing your request."

settings = get_settings()
engine: ResolutionEngine = ResolutionEngine.from_settings(settings)
faq_source = CsvFaqSource(settings.faq_path)


def _str_content(val: None | str | list[dict[str, Any]]) -> str:
    """Flatten a Gradio message content value (str or content blocks) to text."""
    if val is None:
        return ""
    if isinstance(val, str):
        return val
    if isinstance(val, list):
        parts = [
            str(item.get("text") or item.get("content") or "")
            if isinstance(item, dict)
            else str(item)
            for item in val
        ]
        return " ".join(p for p in parts if p)
    return str(val)


def respond(
    message: str,
    history: list[dict[str, str]],
) -> tuple[str, list[dict[str, str]]]:
    """Answer a message and return the updated chat history.

    The persona turn is hidden from the chat display.

    Args:
        message: The user's input text.
        history: Current Gradio chat history (list of role/content dicts).

    Returns:
        A tuple of (cleared input text, updated chat history).
    """
    if not message.strip():
        return "", history

    try:
        conversation = [
            {"role": turn.get("role"), "content": _str_content(turn.get("content"))}
            for turn in history
        ]
        outcome = engine.resolve(message, conversation, faq_source.load())
    except GenerationFailure:
        return "", _with_error(history, message)
    except Exception as exc:
        logger.error("Error in web chat: %s", exc, exc_info=True)
        return "", _with_error(history, message)

    updated = [
        turn.to_message() for turn in outcome.conversation if turn.role is not Role.SYSTEM
    ]
    return "", updated


def _with_error(history: list[dict[str, str]], message: str) -> list[dict[str, str]]:
    return history + [
        {"role": "user", "content": message},
        {"role": "assistant", "content": GENERIC_ERROR},
    ]


def clear_history() -> list[dict[str, str]]:
    """Clear the display; the conversation is the display."""
    logger.info("Conversation history cleared via web UI")
    return []


# ---------------------------------------------------------------------------
# Gradio UI layout
# ---------------------------------------------------------------------------

with gr.Blocks(title="nafbot") as demo:
    gr.Markdown(
        f"# 💊 {settings.persona_organisation} assistant\n"
        "*Answers from the FAQ first, then from a local model.*"
    )

    chatbot = gr.Chatbot(
        label="nafbot",
        height=540,
        layout="bubble",
        buttons=["copy"],
    )

    with gr.Row():
        txt = gr.Textbox(
            placeholder="Ask about registration, approvals, guidelines…",
            show_label=False,
            container=False,
            scale=9,
            autofocus=True,
        )
        send_btn = gr.Button("Send", variant="primary", scale=1)

    with gr.Row():
        clear_btn = gr.Button("🗑️  Clear history", variant="secondary")
        gr.Markdown(f"**Model:** `{settings.ollama_model}`")

    txt.submit(respond, inputs=[txt, chatbot], outputs=[txt, chatbot])
    send_btn.click(respond, inputs=[txt, chatbot], outputs=[txt, chatbot])
    clear_btn.click(clear_history, outputs=chatbot)


if __name__ == "__main__":
    demo.launch(
        server_name="0.0.0.0",
        server_port=7860,
        theme=gr.themes.Soft(),
    )
