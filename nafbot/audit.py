"""nafbot/audit.py

Request correlation and audit sinks.

Every resolved request is assigned an id from :class:`RequestCounter` and,
once answered, offered to an :class:`AuditSink`.  Sinks report problems by
raising :class:`~nafbot.errors.AuditFailure`; the engine logs and discards
those so auditing never changes what the user sees.

Exposed interfaces:
  RequestCounter    : thread-safe monotonically increasing request ids
  AuditRecord       : what gets recorded per answered request
  LoggingAuditSink  : writes records to the application log
  CsvAuditSink      : appends records to a local CSV log
  HttpAuditSink     : POSTs records as JSON to a webhook
  build_audit_sink(): picks a sink from settings
"""

from __future__ import annotations

# Standard Library
import csv
import dataclasses
import itertools
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

# Third-Party Libraries
import httpx

# Local Modules
from nafbot.config import Settings
from nafbot.errors import AuditFailure
from nafbot.models import Source

logger = logging.getLogger(__name__)


class RequestCounter:
    """Process-wide request id source, starting at 1."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._counter)


@dataclasses.dataclass(frozen=True, slots=True)
class AuditRecord:
    """One answered request."""

    request_id: int
    message: str
    answer: str
    source: Source
    timestamp: datetime = dataclasses.field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def as_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
            "answer": self.answer,
            "source": str(self.source),
        }


class AuditSink(Protocol):
    def record(self, record: AuditRecord) -> None: ...


class LoggingAuditSink:
    """Writes audit records to the ``nafbot.audit`` logger."""

    def record(self, record: AuditRecord) -> None:
        logger.info(
            "[audit] request=%d source=%s message=%r answer_chars=%d",
            record.request_id,
            record.source,
            record.message,
            len(record.answer),
        )


class CsvAuditSink:
    """Appends audit records to a CSV file, writing a header on first use."""

    FIELDS: tuple[str, ...] = ("request_id", "timestamp", "message", "answer", "source")

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def record(self, record: AuditRecord) -> None:
        try:
            with self._lock:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                write_header = not self.path.exists() or self.path.stat().st_size == 0
                with self.path.open("a", newline="", encoding="utf-8") as handle:
                    writer = csv.DictWriter(handle, fieldnames=self.FIELDS)
                    if write_header:
                        writer.writeheader()
                    writer.writerow(record.as_dict())
        except OSError as exc:
            raise AuditFailure(f"Could not write audit log {self.path}: {exc}") from exc


class HttpAuditSink:
    """POSTs audit records as JSON to a webhook."""

    def __init__(self, url: str, timeout: float = 5.0) -> None:
        self.url = url
        self.timeout = timeout

    def record(self, record: AuditRecord) -> None:
        try:
            response = httpx.post(self.url, json=record.as_dict(), timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise AuditFailure(f"Audit webhook {self.url} failed: {exc}") from exc


def build_audit_sink(settings: Settings) -> AuditSink:
    """Choose an audit sink: webhook, then CSV file, then the log."""
    if settings.audit_webhook_url:
        return HttpAuditSink(settings.audit_webhook_url, timeout=settings.audit_timeout)
    if settings.audit_csv_path:
        return CsvAuditSink(settings.audit_csv_path)
    return LoggingAuditSink()
