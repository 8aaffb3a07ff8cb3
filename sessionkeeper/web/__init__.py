"""HTTP layer: aiohttp server and session cookie accessor."""

from sessionkeeper.web.cookie import get_session_id, set_session_id
from sessionkeeper.web.server import SessionServer

__all__ = ["SessionServer", "get_session_id", "set_session_id"]
