"""Sweep observer: periodic removal of expired sessions."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from sessionkeeper.log_context import log_context

if TYPE_CHECKING:
    from sessionkeeper.config import SweepConfig
    from sessionkeeper.session.manager import SessionManager

logger = logging.getLogger(__name__)


class SweepObserver:
    """Calls ``SessionManager.delete_expired_sessions`` every interval.

    Lives outside the session core, which never schedules work by itself.
    ``start()`` / ``stop()`` manage one asyncio background task.
    """

    def __init__(self, config: SweepConfig, manager: SessionManager) -> None:
        self._config = config
        self._manager = manager
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the sweep background loop."""
        if not self._config.enabled:
            logger.info("Session sweep disabled in config")
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        self._task.add_done_callback(_log_task_crash)
        logger.info("Session sweep started (every %ds)", self._config.interval_seconds)

    async def stop(self) -> None:
        """Stop the sweep background loop."""
        self._running = False
        if self._task:
            task = self._task
            self._task = None
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("Session sweep stopped")

    async def run_once(self) -> int:
        """Sweep immediately. Returns the number of deleted sessions."""
        with log_context(operation="sweep"):
            return await self._manager.delete_expired_sessions()

    async def _loop(self) -> None:
        """Sleep -> sweep -> repeat."""
        try:
            while self._running:
                await asyncio.sleep(self._config.interval_seconds)
                if not self._running:
                    continue
                try:
                    await self.run_once()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("Sweep tick failed (continuing)")
        except asyncio.CancelledError:
            logger.debug("Sweep loop cancelled")


def _log_task_crash(task: asyncio.Task[None]) -> None:
    """Log if the sweep background task crashes unexpectedly."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Sweep loop crashed: %s", exc, exc_info=exc)
