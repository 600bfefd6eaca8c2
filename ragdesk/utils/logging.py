"""Logging utilities with structured JSON output and request correlation.

Every module emits logs through the same formatter so one request can be
followed across classifier, retriever, summarizer and answerer by its
correlation id.
"""

from __future__ import annotations

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from ragdesk.config import settings

_correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")


def bind_correlation_id(correlation_id: str) -> None:
    """Attach a correlation id to every log record emitted in this context."""

    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set("-")


def get_correlation_id() -> str:
    return _correlation_id_var.get()


class JsonFormatter(logging.Formatter):
    """Convert standard Python log records into JSON strings."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", get_correlation_id()),
            "message": record.getMessage(),
        }

        # If a module passes extra context as `record.context`, include it.
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            payload["context"] = context

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=True, default=str)


class CorrelationIdFilter(logging.Filter):
    """Stamp the current correlation id onto records at emit time."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


def configure_logging(debug: bool | None = None) -> None:
    """Configure root logging once for the entire application.

    Parameters
    ----------
    debug:
        Optional explicit override. If `None`, use `settings.debug`.

    Existing handlers are cleared so repeated setup calls (uvicorn reloads,
    tests) do not duplicate output.
    """

    effective_debug = settings.debug if debug is None else debug
    level = logging.DEBUG if effective_debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(JsonFormatter())
    stream_handler.addFilter(CorrelationIdFilter())
    root_logger.addHandler(stream_handler)


def get_logger(name: str) -> logging.Logger:
    """Return a module-specific logger."""

    return logging.getLogger(name)
