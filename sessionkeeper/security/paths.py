"""Session id validation and storage path containment checks."""

from __future__ import annotations

import logging
from pathlib import Path

from sessionkeeper.errors import InvalidSessionIdError

logger = logging.getLogger(__name__)

MAX_SESSION_ID_LENGTH = 255


def validate_session_id(session_id: str) -> str:
    """Return *session_id* unchanged if it is safe to use as a file name."""
    if not session_id:
        msg = "Session id is empty"
        raise InvalidSessionIdError(msg)

    if len(session_id) > MAX_SESSION_ID_LENGTH:
        msg = f"Session id exceeds {MAX_SESSION_ID_LENGTH} characters"
        raise InvalidSessionIdError(msg)

    if any(ord(c) < 32 or c == "\x7f" for c in session_id):
        msg = f"Session id contains control characters: {session_id!r}"
        raise InvalidSessionIdError(msg)

    if "/" in session_id or "\\" in session_id:
        msg = f"Session id contains a path separator: {session_id!r}"
        raise InvalidSessionIdError(msg)

    # Also covers "." and "..".
    if session_id.startswith("."):
        msg = f"Session id starts with a dot: {session_id!r}"
        raise InvalidSessionIdError(msg)

    return session_id


def session_file_path(directory: Path, session_id: str) -> Path:
    """Resolve the file for *session_id* and check it stays inside *directory*."""
    validate_session_id(session_id)
    resolved_root = directory.resolve()
    resolved = (resolved_root / session_id).resolve()
    if resolved.parent != resolved_root:
        logger.warning("Session path blocked: %s (outside %s)", resolved, resolved_root)
        msg = f"Session id {session_id!r} escapes the storage directory"
        raise InvalidSessionIdError(msg)
    return resolved


def is_session_id_valid(session_id: str) -> bool:
    """Non-throwing version of validate_session_id."""
    try:
        validate_session_id(session_id)
    except InvalidSessionIdError:
        return False
    return True
