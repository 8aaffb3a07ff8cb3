"""File-based session storage: one plain-text file per session.

File layout (UTF-8, ``\\n`` terminated)::

    expiresAt:2025-06-15T13:00:00.000000Z
    count:2
    name:alice

The first ``:`` on a line separates key from value; lines without one are
skipped and a repeated key keeps its last value.  Every bag value is written
with ``str()`` and read back as ``str``: callers persisting ints or bools
through this backend must parse them again after a reload.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from sessionkeeper.errors import SessionNotFoundError, StorageFaultError
from sessionkeeper.log_context import short_id
from sessionkeeper.security.paths import is_session_id_valid, session_file_path
from sessionkeeper.session.entity import EXPIRES_AT_KEY, RESERVED_KEYS, Session
from sessionkeeper.session.storage.base import SessionStorage

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_DIR = Path("storage/sessions")
DELIMITER = ":"
DIR_MODE = 0o744
ZERO_TIME = datetime.fromtimestamp(0, UTC)

_UNENCODABLE = ("\n", "\r")
_EXCESS_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def format_timestamp(moment: datetime) -> str:
    """Render *moment* as RFC 3339 in UTC with a ``Z`` suffix."""
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(raw: str) -> datetime:
    """Parse an RFC 3339 timestamp; fractions beyond microseconds are truncated."""
    try:
        moment = datetime.fromisoformat(_EXCESS_FRACTION_RE.sub(r"\1", raw.strip()))
    except ValueError as exc:
        msg = f"Malformed {EXPIRES_AT_KEY} timestamp: {raw!r}"
        raise StorageFaultError(msg) from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment


def encode_session(session: Session) -> str:
    """Serialize *session* into the line-based file format."""
    lines = [f"{EXPIRES_AT_KEY}{DELIMITER}{format_timestamp(session.expires_at)}"]
    for key, value in session.data.items():
        text = str(value)
        if key in RESERVED_KEYS:
            msg = f"Key {key!r} is reserved"
            raise StorageFaultError(msg)
        if DELIMITER in key or any(c in key for c in _UNENCODABLE):
            msg = f"Key {key!r} cannot be stored: contains a delimiter or line break"
            raise StorageFaultError(msg)
        if any(c in text for c in _UNENCODABLE):
            msg = f"Value for key {key!r} cannot be stored: contains a line break"
            raise StorageFaultError(msg)
        lines.append(f"{key}{DELIMITER}{text}")
    return "\n".join(lines) + "\n"


def decode_session(session_id: str, content: str) -> Session:
    """Rebuild a Session from file content.

    A record without an ``expiresAt`` line gets the zero time and therefore
    reads as expired.
    """
    expires_at = ZERO_TIME
    data: dict[str, Any] = {}
    for line in content.split("\n"):
        key, sep, value = line.partition(DELIMITER)
        if not sep:
            continue
        if key == EXPIRES_AT_KEY:
            expires_at = parse_timestamp(value)
            continue
        data[key] = value
    return Session(session_id, expires_at, data)


class FileStorage(SessionStorage):
    """Sessions stored as files named by their id inside one directory.

    One lock serializes every filesystem operation of the instance, including
    the full directory scan of ``delete_expired_sessions``.  The blocking I/O
    runs in a worker thread.  There is no cross-process locking and no atomic
    rename: two processes sharing a directory race, last writer wins.
    """

    name = "file"

    def __init__(self, ttl: timedelta, directory: Path | None = None) -> None:
        super().__init__(ttl)
        self._dir = directory if directory is not None else DEFAULT_STORAGE_DIR

    @property
    def directory(self) -> Path:
        return self._dir

    # -- Async API --

    async def init_session(self, session_id: str) -> Session:
        session = Session(session_id, self._new_expiry(), {})
        async with self._lock:
            await asyncio.to_thread(self._write, session)
        logger.debug("Session file created: %s", short_id(session_id))
        return session

    async def get_session(self, session_id: str) -> Session:
        async with self._lock:
            return await asyncio.to_thread(self._read, session_id)

    async def set_session(self, session: Session) -> None:
        async with self._lock:
            await asyncio.to_thread(self._write, session)

    async def delete_session(self, session_id: str) -> None:
        async with self._lock:
            await asyncio.to_thread(self._delete, session_id)

    async def list_session_ids(self) -> list[str]:
        async with self._lock:
            return await asyncio.to_thread(self._list_ids)

    async def delete_expired_sessions(self) -> int:
        async with self._lock:
            return await asyncio.to_thread(self._delete_expired)

    # -- Blocking helpers (run via asyncio.to_thread, lock held by caller) --

    def _ensure_dir(self) -> None:
        try:
            self._dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"Cannot create session directory {self._dir}: {exc}"
            raise StorageFaultError(msg) from exc

    def _write(self, session: Session) -> None:
        # Everything that can fail on content fails before the file is truncated.
        try:
            payload = encode_session(session).encode("utf-8")
        except UnicodeEncodeError as exc:
            msg = f"Session {short_id(session.id)} holds text that is not valid UTF-8: {exc}"
            raise StorageFaultError(msg) from exc
        path = session_file_path(self._dir, session.id)
        self._ensure_dir()
        try:
            path.write_bytes(payload)
        except OSError as exc:
            msg = f"Failed to write session {short_id(session.id)}: {exc}"
            raise StorageFaultError(msg) from exc

    def _read(self, session_id: str) -> Session:
        path = session_file_path(self._dir, session_id)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise SessionNotFoundError(session_id) from None
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Failed to read session {short_id(session_id)}: {exc}"
            raise StorageFaultError(msg) from exc
        return decode_session(session_id, content)

    def _delete(self, session_id: str) -> None:
        path = session_file_path(self._dir, session_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            msg = f"Failed to delete session {short_id(session_id)}: {exc}"
            raise StorageFaultError(msg) from exc

    def _list_ids(self) -> list[str]:
        self._ensure_dir()
        try:
            entries = sorted(self._dir.iterdir())
        except OSError as exc:
            msg = f"Cannot list session directory {self._dir}: {exc}"
            raise StorageFaultError(msg) from exc
        return [
            entry.name for entry in entries if entry.is_file() and is_session_id_valid(entry.name)
        ]

    def _delete_expired(self) -> int:
        deleted = 0
        for session_id in self._list_ids():
            try:
                session = self._read(session_id)
            except SessionNotFoundError:
                continue
            except StorageFaultError:
                logger.warning(
                    "Skipping unreadable session file %s", short_id(session_id), exc_info=True
                )
                continue
            if session.does_expire():
                logger.debug("Session %s expired, deleted", short_id(session_id))
                self._delete(session_id)
                deleted += 1
        return deleted
