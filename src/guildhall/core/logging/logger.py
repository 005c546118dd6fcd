"""
Structured logging for the Guildhall engine.

Records are stamped with the acting player and the engine operation (taken
from a context variable that `LogContext` sets), then handed to a queue so
formatting and I/O happen on a listener thread instead of inside a database
transaction.

Output is one JSON object per line when `Config.LOG_JSON` is set or the
environment is production; otherwise a single-line console format.
"""

from __future__ import annotations

import copy
import json
import logging
import queue
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Dict, Optional

from guildhall.core.config.config import Config

_log_context: ContextVar[Dict[str, Any]] = ContextVar("guildhall_log_context", default={})

CONTEXT_FIELDS = ("user_id", "player_id", "guild_id", "operation", "correlation_id")

CONSOLE_FORMAT = (
    "%(asctime)s %(levelname)-8s %(name)s [%(operation)s user=%(user_id)s] %(message)s"
)

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"} | set(CONTEXT_FIELDS)

_listener: Optional[QueueListener] = None


class ContextFilter(logging.Filter):
    """Copy the active LogContext onto each record; unset fields read "-"."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = _log_context.get()
        for field in CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, context.get(field, "-"))
        for key, value in context.items():
            if key not in CONTEXT_FIELDS and not hasattr(record, key):
                setattr(record, key, value)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record: core fields, context, then any extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, "-")
            if value != "-":
                payload[field] = value

        extra = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            payload["exception"] = record.exc_text

        return json.dumps(payload, default=str)


class _QueueHandler(QueueHandler):
    """Queue handler that keeps the message and traceback as separate fields."""

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        record = copy.copy(record)
        record.msg = record.getMessage()
        record.args = None
        if record.exc_info:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
            record.exc_info = None
        return record


def _use_json() -> bool:
    if Config.LOG_JSON is not None:
        return bool(Config.LOG_JSON)
    return Config.is_production()


def setup_logging() -> None:
    """
    Route the root logger through a queue to a single stream handler.

    Idempotent; later calls are ignored until `shutdown_logging()`.
    """
    global _listener
    if _listener is not None:
        return

    stream = logging.StreamHandler()
    stream.setFormatter(JSONFormatter() if _use_json() else logging.Formatter(CONSOLE_FORMAT))

    # The filter runs on the producing side, where the context variable is set.
    queue_handler = _QueueHandler(queue.SimpleQueue())
    queue_handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.handlers = [queue_handler]
    root.setLevel(Config.LOG_LEVEL.upper())
    for noisy in ("sqlalchemy", "aiosqlite", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _listener = QueueListener(queue_handler.queue, stream, respect_handler_level=True)
    _listener.start()


def shutdown_logging() -> None:
    """Flush queued records and stop the listener thread."""
    global _listener
    if _listener is None:
        return
    _listener.stop()
    _listener = None


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Scope log context to a block.

    Works with both `with` and `async with`. Nested blocks inherit the outer
    fields; a correlation id is generated when none is active.

        async with LogContext(user_id="u-1", operation="claim_craft"):
            ...
    """

    def __init__(self, **fields: Any) -> None:
        self._fields = {key: value for key, value in fields.items() if value is not None}
        self._token: Optional[Token] = None

    def __enter__(self) -> "LogContext":
        merged = {**_log_context.get(), **self._fields}
        merged.setdefault("correlation_id", uuid.uuid4().hex[:8])
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.__exit__(exc_type, exc, tb)


setup_logging()
