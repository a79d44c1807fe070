"""
nafbot/api.py

FastAPI HTTP interface for the resolution engine.

Endpoints:
  GET  /health    : liveness probe
  POST /api/chat  : answer a message, returns the answer plus the bounded
                     conversation
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from nafbot.chat import ResolutionEngine
from nafbot.config import get_settings
from nafbot.errors import GenerationFailure, InvalidRequest
from nafbot.faq import CsvFaqSource, FaqSource
from nafbot.models import Role, Source

load_dotenv()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("nafbot.api")

GENERIC_ERROR = "An error occurred while processing your request."

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="nafbot",
    version="0.1.0",
    description=(
        "FAQ-first regulatory assistant. Messages are answered from the FAQ "
        "set when possible and by a local language model otherwise."
    ),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class ChatTurnModel(BaseModel):
    role: Role
    content: str


class ChatRequest(BaseModel):
    # Optional here so a missing message gets the same 400 as an empty one.
    message: str | None = Field(None, description="The user's latest message.")
    # Plain dicts: unknown roles are dropped by the engine, not rejected here.
    conversation: list[dict[str, Any]] | None = Field(
        default=None, description="Prior turns as role/content objects, oldest first."
    )
    max_tokens: int | None = Field(None, ge=1)
    temperature: float | None = Field(None, ge=0.0, le=2.0)


class ChatResponse(BaseModel):
    response: str
    source: Source
    conversation: list[ChatTurnModel]


# ---------------------------------------------------------------------------
# Dependencies (overridden in tests)
# ---------------------------------------------------------------------------

_engine: ResolutionEngine | None = None
_engine_lock = threading.Lock()


def get_engine() -> ResolutionEngine:
    """Lazily build the process-wide engine from settings."""
    global _engine
    with _engine_lock:
        if _engine is None:
            _engine = ResolutionEngine.from_settings(get_settings())
    return _engine


def get_faq_source() -> FaqSource:
    return CsvFaqSource(get_settings().faq_path)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", tags=["meta"])
def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok", "server": "nafbot"}


@app.post("/api/chat", response_model=ChatResponse, tags=["chat"])
def chat(
    body: ChatRequest,
    engine: ResolutionEngine = Depends(get_engine),
    faq_source: FaqSource = Depends(get_faq_source),
) -> Any:
    """Answer one message.

    The FAQ set is loaded fresh for every request.  Declared as a plain
    ``def`` so FastAPI runs the blocking model call in its threadpool.

    Args:
        body: Message, optional conversation and generation overrides.

    Returns:
        ChatResponse, or a JSON ``{"error": ...}`` with status 400 for a
        missing message and 500 for any processing failure.
    """
    if body.message is None or not body.message.strip():
        return JSONResponse(status_code=400, content={"error": "Message content is required."})

    try:
        faqs = faq_source.load()
        outcome = engine.resolve(
            body.message,
            body.conversation,
            faqs,
            max_tokens=body.max_tokens,
            temperature=body.temperature,
        )
    except InvalidRequest as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except GenerationFailure as exc:
        logger.error("Chat request failed: %s (cause: %r)", exc, exc.__cause__)
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})
    except Exception as exc:
        logger.error("Error in chat API: %s", exc, exc_info=True)
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})

    return ChatResponse(
        response=outcome.answer,
        source=outcome.source,
        conversation=[
            ChatTurnModel(role=turn.role, content=turn.content)
            for turn in outcome.conversation
        ],
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run_api() -> None:
    """Start the FastAPI server via uvicorn."""
    settings = get_settings()
    logger.info("Starting nafbot API on %s:%d", settings.api_host, settings.api_port)
    uvicorn.run(
        "nafbot.api:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
        reload=False,
    )


if __name__ == "__main__":
    run_api()
