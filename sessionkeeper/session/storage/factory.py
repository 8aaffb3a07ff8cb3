"""Storage backend factory -- returns the right backend for a config name."""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path

from sessionkeeper.errors import ConfigError
from sessionkeeper.session.storage.base import SessionStorage

logger = logging.getLogger(__name__)

BACKEND_NAMES: frozenset[str] = frozenset({"memory", "file"})


def create_storage(
    name: str,
    *,
    ttl: timedelta,
    directory: Path | None = None,
) -> SessionStorage:
    """Create a storage backend by *name* (``"memory"`` or ``"file"``)."""
    logger.debug("Storage factory creating backend=%s", name)
    if name == "memory":
        from sessionkeeper.session.storage.memory import MemoryStorage

        return MemoryStorage(ttl)

    if name == "file":
        from sessionkeeper.session.storage.file import FileStorage

        return FileStorage(ttl, directory)

    msg = f"Unknown session backend {name!r} (expected one of: {', '.join(sorted(BACKEND_NAMES))})"
    raise ConfigError(msg)
