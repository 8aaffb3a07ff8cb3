"""HTTP server: aiohttp app exposing the session-backed visit counter."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from aiohttp import web

from sessionkeeper.errors import InvalidSessionIdError, StorageFaultError
from sessionkeeper.log_context import set_log_context
from sessionkeeper.web.cookie import clear_session_id, get_session_id, set_session_id

if TYPE_CHECKING:
    from sessionkeeper.config import AppConfig
    from sessionkeeper.session.manager import SessionManager

logger = logging.getLogger(__name__)

COUNT_KEY = "count"


def parse_count(value: Any) -> int:
    """Read the stored counter; the file backend hands it back as text."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            logger.warning("Corrupt counter value %r, restarting at 0", value)
    return 0


class SessionServer:
    """HTTP server backed by one SessionManager.

    Routes:
    - ``GET  /health`` -- Health check reporting the storage backend.
    - ``GET  /count``  -- Per-session visit counter.
    - ``POST /logout`` -- Delete the session and clear the cookie.
    """

    def __init__(self, config: AppConfig, manager: SessionManager) -> None:
        self._config = config
        self._manager = manager
        self._runner: web.AppRunner | None = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/count", self._handle_count)
        app.router.add_post("/logout", self._handle_logout)
        return app

    async def start(self) -> None:
        """Create the aiohttp app and start listening."""
        self._runner = web.AppRunner(self.build_app(), access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.server.host, self._config.server.port)
        await site.start()
        logger.info(
            "Session server listening on %s:%d",
            self._config.server.host,
            self._config.server.port,
        )

    async def stop(self) -> None:
        """Shut down the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Session server stopped")

    # -- Handlers --

    async def _handle_health(self, _request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "backend": self._manager.storage.name})

    async def _handle_count(self, request: web.Request) -> web.Response:
        set_log_context(operation="http")
        cookie_cfg = self._config.cookie
        try:
            session, is_new = await self._manager.get_or_create(get_session_id(request, cookie_cfg))
            set_log_context(session_id=session.id)
            count = parse_count(session.get(COUNT_KEY)) + 1
            session.set(COUNT_KEY, count)
            await self._manager.set_session(session)
        except StorageFaultError:
            logger.exception("Session storage failed")
            return web.json_response({"error": "session_storage_failed"}, status=500)

        logger.debug("Visit count=%d new=%s", count, is_new)
        response = web.json_response({COUNT_KEY: count, "new": is_new})
        if is_new:
            max_age = int(self._manager.storage.ttl.total_seconds())
            set_session_id(response, session.id, cookie_cfg, max_age=max_age)
        return response

    async def _handle_logout(self, request: web.Request) -> web.Response:
        set_log_context(operation="http")
        cookie_cfg = self._config.cookie
        session_id = get_session_id(request, cookie_cfg)
        if session_id:
            try:
                await self._manager.delete_session(session_id)
            except InvalidSessionIdError:
                logger.debug("Ignoring malformed session cookie on logout")
            except StorageFaultError:
                logger.exception("Session storage failed")
                return web.json_response({"error": "session_storage_failed"}, status=500)
        response = web.json_response({"logged_out": session_id is not None})
        clear_session_id(response, cookie_cfg)
        return response
