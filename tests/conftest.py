"""Shared test fixtures."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from sessionkeeper.session.manager import SessionManager
from sessionkeeper.session.storage.base import SessionStorage
from sessionkeeper.session.storage.file import FileStorage
from sessionkeeper.session.storage.memory import MemoryStorage

TTL = timedelta(hours=1)


@pytest.fixture
def sessions_dir(tmp_path: Path) -> Path:
    """Storage directory for the file backend (not created up front)."""
    return tmp_path / "storage" / "sessions"


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage(TTL)


@pytest.fixture
def file_storage(sessions_dir: Path) -> FileStorage:
    return FileStorage(TTL, sessions_dir)


@pytest.fixture(params=["memory", "file"])
def storage(request: pytest.FixtureRequest, sessions_dir: Path) -> SessionStorage:
    """Each backend in turn, for contract tests."""
    if request.param == "memory":
        return MemoryStorage(TTL)
    return FileStorage(TTL, sessions_dir)


@pytest.fixture
def manager(storage: SessionStorage) -> SessionManager:
    return SessionManager(storage)
