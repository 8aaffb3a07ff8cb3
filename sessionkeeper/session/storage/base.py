"""Abstract interface for session storage backends."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta

from sessionkeeper.session.entity import Session

logger = logging.getLogger(__name__)


class SessionStorage(ABC):
    """Persistence contract shared by every backend.

    Backends are dumb stores: ``get_session`` returns expired records as-is,
    expiry policy belongs to the manager.  Each instance serializes all of its
    operations behind one ``asyncio.Lock`` regardless of session id.
    """

    name: str = ""

    def __init__(self, ttl: timedelta) -> None:
        self._ttl = ttl
        self._lock = asyncio.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def _new_expiry(self) -> datetime:
        return datetime.now(UTC) + self._ttl

    @abstractmethod
    async def init_session(self, session_id: str) -> Session:
        """Create (or reset) the record for *session_id* with an empty bag."""

    @abstractmethod
    async def get_session(self, session_id: str) -> Session:
        """Load *session_id*. Raises ``SessionNotFoundError`` if absent."""

    @abstractmethod
    async def set_session(self, session: Session) -> None:
        """Overwrite the stored record with *session*'s expiry and full bag."""

    @abstractmethod
    async def delete_session(self, session_id: str) -> None:
        """Remove the record. Deleting a missing id is not an error."""

    @abstractmethod
    async def list_session_ids(self) -> list[str]:
        """Return the ids of all stored records."""

    @abstractmethod
    async def delete_expired_sessions(self) -> int:
        """Delete every expired record. Returns the number deleted."""
