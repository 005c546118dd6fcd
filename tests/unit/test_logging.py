"""
Unit tests for the structured logging pipeline.

Covers the context stamping done by `ContextFilter`, the JSON line layout,
`LogContext` nesting, and the queue listener lifecycle.
"""

import json
import logging
import sys

import pytest

from guildhall.core.logging import logger as log_module
from guildhall.core.logging import ContextFilter, JSONFormatter, LogContext


def _record(msg="hello", **extra):
    record = logging.LogRecord("guildhall.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestContextFilter:
    """Records pick up the active LogContext."""

    def test_defaults_outside_context(self):
        """Without a context every field reads as a dash."""
        record = _record()

        assert ContextFilter().filter(record) is True
        assert record.user_id == "-"
        assert record.operation == "-"

    def test_fields_from_context(self):
        """Player, operation and custom fields are copied from the context."""
        record = _record()

        with LogContext(user_id="u-1", operation="claim_craft", shop_id=3):
            ContextFilter().filter(record)

        assert record.user_id == "u-1"
        assert record.operation == "claim_craft"
        assert record.shop_id == 3
        assert len(record.correlation_id) == 8

    def test_explicit_extra_wins(self):
        """A value passed through `extra=` is not overwritten by the context."""
        record = _record(operation="seed")

        with LogContext(operation="startup"):
            ContextFilter().filter(record)

        assert record.operation == "seed"


@pytest.mark.unit
class TestLogContext:
    """Scoping of log context blocks."""

    async def test_nested_blocks_inherit_and_restore(self):
        """Inner blocks keep the outer correlation id and unwind cleanly."""
        async with LogContext(user_id="u-1"):
            outer = _record()
            ContextFilter().filter(outer)
            with LogContext(operation="promote_guild", guild_id=7):
                inner = _record()
                ContextFilter().filter(inner)
            after = _record()
            ContextFilter().filter(after)

        assert inner.user_id == "u-1"
        assert inner.guild_id == 7
        assert inner.correlation_id == outer.correlation_id
        assert after.operation == "-"

    def test_none_fields_ignored(self):
        """Passing None leaves the field unset."""
        record = _record()

        with LogContext(user_id=None, operation="list_items"):
            ContextFilter().filter(record)

        assert record.user_id == "-"


@pytest.mark.unit
class TestJSONFormatter:
    """One JSON object per record."""

    def test_layout(self):
        """Context fields sit at the top level, extras under `extra`."""
        record = _record("claimed %s", reward="Bread")
        record.args = ("craft",)
        with LogContext(user_id="u-2", operation="claim_craft"):
            ContextFilter().filter(record)

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "claimed craft"
        assert payload["level"] == "INFO"
        assert payload["user_id"] == "u-2"
        assert "guild_id" not in payload
        assert payload["extra"] == {"reward": "Bread"}

    def test_exception_text(self):
        """Tracebacks are rendered into the `exception` field."""
        try:
            raise ValueError("bad roll")
        except ValueError:
            record = logging.LogRecord(
                "guildhall.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )

        payload = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad roll" in payload["exception"]


@pytest.mark.unit
class TestLoggingLifecycle:
    """Queue listener setup and teardown."""

    def test_restart(self):
        """Shutdown stops the listener and setup brings a new one up."""
        log_module.shutdown_logging()
        assert log_module._listener is None
        log_module.shutdown_logging()

        log_module.setup_logging()

        assert log_module._listener is not None
        handlers = logging.getLogger().handlers
        assert any(isinstance(handler, log_module.QueueHandler) for handler in handlers)
