"""Tests for ContextVar-based log enrichment."""

from __future__ import annotations

import asyncio
import contextvars
import logging

from sessionkeeper.log_context import (
    ContextFilter,
    LogContext,
    current_log_context,
    log_context,
    set_log_context,
    short_id,
)


def _record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, "", 0, "msg", (), None)


def test_empty_context_has_no_prefix() -> None:
    def check() -> None:
        record = _record()
        assert ContextFilter().filter(record) is True
        assert record.ctx == ""  # type: ignore[attr-defined]

    contextvars.Context().run(check)


def test_prefix_includes_operation_and_short_session_id() -> None:
    def check() -> None:
        set_log_context(operation="http", session_id="abcdefghijklmnop")
        record = _record()
        ContextFilter().filter(record)
        assert record.ctx == "[http:abcdefgh] "  # type: ignore[attr-defined]

    contextvars.Context().run(check)


async def test_context_does_not_leak_between_tasks() -> None:
    async def handler(sid: str) -> str:
        set_log_context(operation="http", session_id=sid)
        await asyncio.sleep(0)
        record = _record()
        ContextFilter().filter(record)
        return record.ctx  # type: ignore[attr-defined,no-any-return]

    first, second = await asyncio.gather(handler("aaaaaaaa1"), handler("bbbbbbbb2"))
    assert first == "[http:aaaaaaaa] "
    assert second == "[http:bbbbbbbb] "


def test_set_keeps_fields_not_given() -> None:
    def check() -> None:
        set_log_context(operation="http")
        set_log_context(session_id="abcdefghijklmnop")
        assert current_log_context() == LogContext("http", "abcdefghijklmnop")

    contextvars.Context().run(check)


def test_scoped_context_restores_previous() -> None:
    def check() -> None:
        set_log_context(operation="http", session_id="outer-session")
        with log_context(operation="sweep") as ctx:
            assert ctx.prefix() == "[sweep] "
            record = _record()
            ContextFilter().filter(record)
            assert record.ctx == "[sweep] "  # type: ignore[attr-defined]
        assert current_log_context() == LogContext("http", "outer-session")

    contextvars.Context().run(check)


def test_short_id() -> None:
    assert short_id("abcdefghijklmnop") == "abcdefgh"
    assert short_id("abc") == "abc"
    assert short_id(None) == ""
