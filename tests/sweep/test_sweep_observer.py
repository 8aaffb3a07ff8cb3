"""Tests for the periodic session sweep observer."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

from sessionkeeper.config import SweepConfig
from sessionkeeper.errors import StorageFaultError
from sessionkeeper.session.entity import Session
from sessionkeeper.session.manager import SessionManager
from sessionkeeper.session.storage.memory import MemoryStorage
from sessionkeeper.sweep.observer import SweepObserver


def _make_config(*, enabled: bool = True, interval_seconds: int = 600) -> SweepConfig:
    return SweepConfig(enabled=enabled, interval_seconds=interval_seconds)


def _make_manager() -> SessionManager:
    return SessionManager(MemoryStorage(timedelta(hours=1)))


async def test_start_disabled_does_not_spawn_task() -> None:
    observer = SweepObserver(_make_config(enabled=False), _make_manager())
    await observer.start()
    assert observer._task is None
    assert not observer.running
    await observer.stop()


async def test_start_and_stop() -> None:
    observer = SweepObserver(_make_config(), _make_manager())
    await observer.start()
    assert observer._task is not None
    assert observer.running
    await observer.stop()
    assert not observer.running
    assert observer._task is None


async def test_run_once_deletes_expired() -> None:
    manager = _make_manager()
    live = await manager.create_session()
    stale = await manager.create_session()
    await manager.set_session(Session(stale.id, datetime.now(UTC) - timedelta(minutes=1), {}))

    observer = SweepObserver(_make_config(), manager)
    assert await observer.run_once() == 1
    assert await manager.storage.list_session_ids() == [live.id]


async def test_loop_sweeps_on_interval() -> None:
    manager = MagicMock(spec=SessionManager)
    manager.delete_expired_sessions = AsyncMock(return_value=0)
    observer = SweepObserver(_make_config(interval_seconds=0), manager)

    await observer.start()
    for _ in range(50):
        await asyncio.sleep(0)
        if manager.delete_expired_sessions.await_count >= 2:
            break
    await observer.stop()

    assert manager.delete_expired_sessions.await_count >= 2


async def test_loop_survives_storage_fault() -> None:
    manager = MagicMock(spec=SessionManager)
    calls = 0

    def _sweep() -> int:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise StorageFaultError("disk gone")
        return 0

    manager.delete_expired_sessions = AsyncMock(side_effect=_sweep)
    observer = SweepObserver(_make_config(interval_seconds=0), manager)

    await observer.start()
    for _ in range(50):
        await asyncio.sleep(0)
        if manager.delete_expired_sessions.await_count >= 2:
            break
    assert observer._task is not None
    assert not observer._task.done()
    await observer.stop()

    assert manager.delete_expired_sessions.await_count >= 2
