"""Project-level exception hierarchy."""

from __future__ import annotations


class SessionKeeperError(Exception):
    """Base for all sessionkeeper exceptions."""


class ConfigError(SessionKeeperError):
    """Configuration is missing, malformed, or names an unknown backend."""


class SessionError(SessionKeeperError):
    """Session persistence or lifecycle failed."""


class SessionNotFoundError(SessionError):
    """No stored record exists for the requested session id."""

    def __init__(self, session_id: str, message: str | None = None) -> None:
        self.session_id = session_id
        super().__init__(message or f"Session not found: {session_id!r}")


class SessionExpiredError(SessionNotFoundError):
    """A record exists for the session id but its expiry has passed."""

    def __init__(self, session_id: str) -> None:
        super().__init__(session_id, f"Session expired: {session_id!r}")


class InvalidSessionIdError(SessionError):
    """Session id cannot be used as a storage key."""


class StorageFaultError(SessionError):
    """Storage medium failed: I/O error, corrupt record, or unencodable data."""
