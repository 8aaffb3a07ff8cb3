"""Session entity: identity, expiry, and a mutable key/value bag."""

from __future__ import annotations

from copy import deepcopy
from datetime import UTC, datetime
from typing import Any

from sessionkeeper.log_context import short_id

EXPIRES_AT_KEY = "expiresAt"
RESERVED_KEYS: frozenset[str] = frozenset({EXPIRES_AT_KEY})

# Values that survive the file backend (as text). Anything else is memory-only.
SessionValue = str | int | float | bool


class Session:
    """A detached working copy of one stored session.

    Mutations via ``set``/``delete`` stay local until the copy is handed
    back to ``SessionManager.set_session``.  ``copy()`` is deep, so mutable
    values held by the memory backend are never shared with callers.  A naive
    ``expires_at`` is taken as UTC.
    """

    __slots__ = ("_data", "_expires_at", "_id")

    def __init__(
        self,
        session_id: str,
        expires_at: datetime,
        data: dict[str, Any] | None = None,
    ) -> None:
        self._id = session_id
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        self._expires_at = expires_at
        self._data: dict[str, Any] = data if data is not None else {}

    @property
    def id(self) -> str:
        return self._id

    @property
    def expires_at(self) -> datetime:
        return self._expires_at

    @property
    def data(self) -> dict[str, Any]:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if key in RESERVED_KEYS:
            msg = f"Key {key!r} is reserved"
            raise ValueError(msg)
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def does_expire(self) -> bool:
        """True once the current time is past ``expires_at``."""
        return datetime.now(UTC) > self._expires_at

    def copy(self) -> Session:
        return Session(self._id, self._expires_at, deepcopy(self._data))

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return (
            f"Session(id={short_id(self._id)!r}, expires_at={self._expires_at.isoformat()}, "
            f"keys={sorted(self._data)})"
        )
