"""Logging setup for the CLI and the server.

The console goes through rich, the same console library the CLI prints
with.  ``log_dir`` in the config adds a size-rotated ``sessionkeeper.log``.
Both handlers carry the ``[op:sid]`` prefix from ``log_context``.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler

from sessionkeeper.log_context import ContextFilter

if TYPE_CHECKING:
    from sessionkeeper.config import AppConfig

logger = logging.getLogger(__name__)

LOG_FILE_NAME = "sessionkeeper.log"
MAX_BYTES = 2 * 1024 * 1024
BACKUP_COUNT = 5

CONSOLE_FMT = "%(ctx)s%(message)s"
FILE_FMT = "%(asctime)s %(levelname)-8s %(name)s: %(ctx)s%(message)s"

# One request line per hit and loop chatter; only warnings are worth keeping.
_NOISY_LOGGERS = ("aiohttp.access", "aiohttp.server", "asyncio")


def level_from_name(name: str) -> int:
    """Map ``"debug"``/``"INFO"``/... to a logging level; unknown names give INFO."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _reset_root(root: logging.Logger) -> None:
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


def setup_logging(
    level: int = logging.INFO,
    *,
    verbose: bool = False,
    log_dir: Path | None = None,
) -> None:
    """(Re)configure the root logger. Safe to call more than once."""
    if verbose:
        level = logging.DEBUG

    root = logging.getLogger()
    _reset_root(root)
    root.setLevel(level)
    ctx_filter = ContextFilter()

    console = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        log_time_format="%H:%M:%S",
    )
    console.setFormatter(logging.Formatter(CONSOLE_FMT))
    console.addFilter(ctx_filter)
    root.addHandler(console)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(FILE_FMT))
        file_handler.addFilter(ctx_filter)
        root.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging configured (level=%s)", logging.getLevelName(level))


def setup_logging_from_config(config: AppConfig, *, verbose: bool = False) -> None:
    """Apply ``log_level`` and ``log_dir`` from the loaded config. ``-v`` wins over log_level."""
    log_dir = Path(config.log_dir) if config.log_dir else None
    setup_logging(level_from_name(config.log_level), verbose=verbose, log_dir=log_dir)
