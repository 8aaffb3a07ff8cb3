"""Security primitives: session id validation, storage path containment."""

from sessionkeeper.security.paths import is_session_id_valid as is_session_id_valid
from sessionkeeper.security.paths import session_file_path as session_file_path
from sessionkeeper.security.paths import validate_session_id as validate_session_id

__all__ = [
    "is_session_id_valid",
    "session_file_path",
    "validate_session_id",
]
