"""Session management: lifecycle, expiry, pluggable storage."""

from sessionkeeper.session.entity import Session as Session
from sessionkeeper.session.manager import SessionManager as SessionManager

__all__ = ["Session", "SessionManager"]
