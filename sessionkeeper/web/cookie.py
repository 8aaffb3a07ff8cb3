"""Cookie accessor: carries the session id between client and server."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aiohttp import web

    from sessionkeeper.config import CookieConfig


def get_session_id(request: web.Request, config: CookieConfig) -> str | None:
    """Return the session id sent by the client, or None."""
    value = request.cookies.get(config.name, "")
    return value or None


def set_session_id(
    response: web.StreamResponse,
    session_id: str,
    config: CookieConfig,
    *,
    max_age: int | None = None,
) -> None:
    """Attach the session id cookie to *response*."""
    response.set_cookie(
        config.name,
        session_id,
        path=config.path,
        max_age=max_age,
        secure=config.secure,
        httponly=config.httponly,
        samesite=config.samesite,
    )


def clear_session_id(response: web.StreamResponse, config: CookieConfig) -> None:
    """Tell the client to drop the session id cookie."""
    response.del_cookie(config.name, path=config.path)
