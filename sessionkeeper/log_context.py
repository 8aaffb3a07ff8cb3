"""Per-task log prefix naming the current operation and session.

Records logged while handling a request carry ``[http:Ab3xYz9q] ``, records
from a sweep run carry ``[sweep] ``.  Session ids are cut to
``SHORT_ID_LENGTH`` characters wherever they reach a log line: the full id
is the cookie value and grants access to the session.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import NamedTuple

SHORT_ID_LENGTH = 8


def short_id(session_id: str | None) -> str:
    """Loggable form of a session id."""
    return session_id[:SHORT_ID_LENGTH] if session_id else ""


class LogContext(NamedTuple):
    operation: str | None = None
    session_id: str | None = None

    def prefix(self) -> str:
        parts = [part for part in (self.operation, short_id(self.session_id)) if part]
        return f"[{':'.join(parts)}] " if parts else ""


_current: ContextVar[LogContext] = ContextVar("sessionkeeper_log_context", default=LogContext())


def current_log_context() -> LogContext:
    return _current.get()


def set_log_context(
    *,
    operation: str | None = None,
    session_id: str | None = None,
) -> None:
    """Update the context of the running task; omitted fields are kept.

    aiohttp serves every request in its own task, so a handler can set this
    without resetting it afterwards.
    """
    ctx = _current.get()
    _current.set(
        LogContext(
            operation if operation is not None else ctx.operation,
            session_id if session_id is not None else ctx.session_id,
        )
    )


@contextmanager
def log_context(
    *,
    operation: str | None = None,
    session_id: str | None = None,
) -> Iterator[LogContext]:
    """Scope a fresh context to a block; the previous one is restored on exit."""
    token = _current.set(LogContext(operation, session_id))
    try:
        yield _current.get()
    finally:
        _current.reset(token)


class ContextFilter(logging.Filter):
    """Attach the current prefix to each record as ``record.ctx``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.ctx = _current.get().prefix()
        return True
