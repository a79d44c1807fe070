#!/usr/bin/env python3
"""main.py

Interactive CLI for nafbot, built on the Rich library.
The conversation lives in this process and is sent with every message, the
same way the HTTP client does it.
"""

from __future__ import annotations

# Standard Library
import logging
import sys
from typing import NoReturn

# Third-Party Libraries
from dotenv import load_dotenv
from rich.panel import Panel
from rich.theme import Theme
from rich.prompt import Prompt
from rich.console import Console
from rich.markdown import Markdown

# Local Modules
from nafbot.chat import ResolutionEngine
from nafbot.config import Settings, get_settings
from nafbot.errors import GenerationFailure
from nafbot.faq import CsvFaqSource
from nafbot.models import ChatTurn, Source

# Load environment variables from .env file
load_dotenv()

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

custom_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "user": "bold blue",
        "assistant": "green",
    }
)
console = Console(theme=custom_theme)

SOURCE_LABELS: dict[Source, str] = {
    Source.EXACT_FAQ: "FAQ",
    Source.RELEVANT_FAQ: "FAQ (closest match)",
    Source.GENERATED: "model",
}


def display_help() -> None:
    """Display available commands and usage information."""
    help_text = """
**Available Commands:**

- `/help` - Show this help message
- `/clear` - Clear conversation history
- `/stats` - Show conversation statistics
- `/quit` or `/exit` - Exit
- Any other text - Ask a question

Questions are answered from the FAQ file first; the model is only used when
no FAQ entry fits.
    """
    console.print(Panel(Markdown(help_text), title="Help", border_style="cyan"))


def display_stats(conversation: list[ChatTurn], settings: Settings) -> None:
    """Display current conversation statistics.

    Args:
        conversation: The current bounded conversation.
        settings: Active settings.
    """
    turns = len(conversation)
    max_turns = settings.max_conversation_turns

    stats_text = f"""
**Conversation Statistics:**

- Turns in context: {turns}/{max_turns}
- Model: `{settings.ollama_model}`
- Ollama host: `{settings.ollama_host}`
- FAQ file: `{settings.faq_path}`
- Context utilization: {(turns / max_turns * 100):.1f}%
    """
    console.print(Panel(Markdown(stats_text), title="Statistics", border_style="cyan"))


def main() -> NoReturn:
    """Main entry point for the nafbot CLI."""
    settings = get_settings()

    console.print("⚙️  Initializing nafbot...", style="info")
    console.print(f"📍 Ollama host: {settings.ollama_host}", style="info")
    console.print(f"🤖 Model: {settings.ollama_model}", style="info")
    console.print(f"📚 FAQ file: {settings.faq_path}\n", style="info")

    engine = ResolutionEngine.from_settings(settings)
    faq_source = CsvFaqSource(settings.faq_path)
    conversation: list[ChatTurn] = []

    console.print(
        "Type [bold]/help[/bold] for commands, or ask a question!\n", style="info"
    )

    while True:
        try:
            user_input = Prompt.ask("[bold blue]You[/bold blue]").strip()

            if not user_input:
                continue

            if user_input.lower() in ["/quit", "/exit"]:
                console.print("\n👋 Goodbye!\n", style="success")
                sys.exit(0)

            elif user_input.lower() == "/help":
                display_help()
                continue

            elif user_input.lower() == "/clear":
                conversation = []
                console.print("🗑️  Conversation history cleared.\n", style="success")
                continue

            elif user_input.lower() == "/stats":
                display_stats(conversation, settings)
                continue

            console.print()
            with console.status("[bold green]Thinking...", spinner="dots"):
                outcome = engine.resolve(user_input, conversation, faq_source.load())
            conversation = outcome.conversation

            console.print(
                Panel(
                    Markdown(outcome.answer),
                    title="[bold green]nafbot[/bold green]",
                    subtitle=f"[dim]{SOURCE_LABELS[outcome.source]}[/dim]",
                    border_style="green",
                )
            )
            console.print()

        except KeyboardInterrupt:
            console.print("\n\n👋 Interrupted. Goodbye!\n", style="warning")
            sys.exit(0)

        except GenerationFailure as exc:
            console.print(f"\n❌ The model could not answer: {exc.__cause__}\n", style="error")
            console.print(
                f"Make sure Ollama is running and `{settings.ollama_model}` is pulled.\n",
                style="info",
            )

        except Exception as exc:
            console.print(f"\n❌ Error: {exc}\n", style="error")
            console.print(
                "You can continue chatting or type /quit to exit.\n", style="info"
            )


if __name__ == "__main__":
    main()
