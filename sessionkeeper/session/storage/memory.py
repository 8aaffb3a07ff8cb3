"""In-process session storage. Volatile: lost on restart."""

from __future__ import annotations

import logging
from datetime import timedelta

from sessionkeeper.errors import SessionNotFoundError, StorageFaultError
from sessionkeeper.log_context import short_id
from sessionkeeper.session.entity import RESERVED_KEYS, Session
from sessionkeeper.session.storage.base import SessionStorage

logger = logging.getLogger(__name__)


class MemoryStorage(SessionStorage):
    """Sessions kept in a dict behind one lock.

    Values keep their exact Python type.  Records go in and come out as
    copies, so a caller mutating its Session never touches the stored one.
    """

    name = "memory"

    def __init__(self, ttl: timedelta) -> None:
        super().__init__(ttl)
        self._sessions: dict[str, Session] = {}

    async def init_session(self, session_id: str) -> Session:
        async with self._lock:
            session = Session(session_id, self._new_expiry(), {})
            self._sessions[session_id] = session
            logger.debug("Session initialized in memory (total=%d)", len(self._sessions))
            return session.copy()

    async def get_session(self, session_id: str) -> Session:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            return session.copy()

    async def set_session(self, session: Session) -> None:
        reserved = RESERVED_KEYS.intersection(session.data)
        if reserved:
            msg = f"Keys {sorted(reserved)} are reserved"
            raise StorageFaultError(msg)
        async with self._lock:
            self._sessions[session.id] = session.copy()

    async def delete_session(self, session_id: str) -> None:
        async with self._lock:
            self._sessions.pop(session_id, None)

    async def list_session_ids(self) -> list[str]:
        async with self._lock:
            return list(self._sessions)

    async def delete_expired_sessions(self) -> int:
        async with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.does_expire()]
            for sid in expired:
                del self._sessions[sid]
                logger.debug("Session %s expired, deleted", short_id(sid))
            return len(expired)
