"""Session lifecycle: id issuance, expiry enforcement, storage delegation."""

from __future__ import annotations

import logging
import secrets
from pathlib import Path
from typing import TYPE_CHECKING

from sessionkeeper.errors import InvalidSessionIdError, SessionExpiredError, SessionNotFoundError
from sessionkeeper.log_context import short_id
from sessionkeeper.session.storage.factory import create_storage

if TYPE_CHECKING:
    from sessionkeeper.config import SessionConfig
    from sessionkeeper.session.entity import Session
    from sessionkeeper.session.storage.base import SessionStorage

logger = logging.getLogger(__name__)

SESSION_ID_BYTES = 32


def generate_session_id() -> str:
    """Return a URL-safe random id, usable as cookie value and file name."""
    return secrets.token_urlsafe(SESSION_ID_BYTES)


class SessionManager:
    """Facade over exactly one storage backend.

    Construct once at startup and pass the instance to request handlers.
    Expired sessions are refused at ``get_session`` even before a sweep
    removes them.
    """

    def __init__(self, storage: SessionStorage) -> None:
        self._storage = storage

    @classmethod
    def from_config(cls, config: SessionConfig) -> SessionManager:
        """Build a manager for ``config.backend``. Raises ConfigError if unknown."""
        storage = create_storage(
            config.backend,
            ttl=config.ttl,
            directory=Path(config.storage_dir),
        )
        logger.info(
            "Session manager ready backend=%s ttl=%dmin",
            storage.name,
            config.expires_in_minutes,
        )
        return cls(storage)

    @property
    def storage(self) -> SessionStorage:
        return self._storage

    async def create_session(self) -> Session:
        session = await self._storage.init_session(generate_session_id())
        logger.info("Session created expires_at=%s", session.expires_at.isoformat())
        return session

    async def get_session(self, session_id: str) -> Session:
        """Load a usable session.

        Raises ``SessionNotFoundError`` when no record exists and
        ``SessionExpiredError`` (a subclass) when the record has expired.
        """
        session = await self._storage.get_session(session_id)
        if session.does_expire():
            logger.debug("Session %s refused: expired", short_id(session_id))
            raise SessionExpiredError(session_id)
        return session

    async def get_or_create(self, session_id: str | None) -> tuple[Session, bool]:
        """Returns (session, is_new). Creates when the id is absent or unusable."""
        if session_id:
            try:
                return await self.get_session(session_id), False
            except (SessionNotFoundError, InvalidSessionIdError) as exc:
                logger.debug("No usable session (%s), creating a new one", type(exc).__name__)
        return await self.create_session(), True

    async def set_session(self, session: Session) -> None:
        await self._storage.set_session(session)

    async def delete_session(self, session_id: str) -> None:
        await self._storage.delete_session(session_id)
        logger.debug("Session %s deleted", short_id(session_id))

    async def delete_expired_sessions(self) -> int:
        deleted = await self._storage.delete_expired_sessions()
        if deleted:
            logger.info("Sweep removed %d expired session(s)", deleted)
        else:
            logger.debug("Sweep: nothing expired")
        return deleted
