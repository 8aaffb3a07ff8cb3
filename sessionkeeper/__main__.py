"""Entry point: python -m sessionkeeper."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sessionkeeper.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from sessionkeeper.errors import ConfigError, StorageFaultError
from sessionkeeper.log_context import log_context
from sessionkeeper.logging_config import setup_logging, setup_logging_from_config
from sessionkeeper.session.manager import SessionManager
from sessionkeeper.sweep.observer import SweepObserver
from sessionkeeper.web.server import SessionServer

logger = logging.getLogger(__name__)

_console = Console()

_IS_WINDOWS = sys.platform == "win32"


# ---------------------------------------------------------------------------
# Startup helpers
# ---------------------------------------------------------------------------


def _parse_config_path(args: list[str]) -> Path:
    """Extract the value of ``--config PATH`` / ``--config=PATH`` from CLI args."""
    for i, arg in enumerate(args):
        if arg.startswith("--config="):
            return Path(arg.split("=", 1)[1])
        if arg == "--config" and i + 1 < len(args):
            return Path(args[i + 1])
    return DEFAULT_CONFIG_PATH


def _bootstrap(args: list[str], verbose: bool) -> tuple[AppConfig, SessionManager]:
    """Load config, configure logging, build the manager. Exits on ConfigError."""
    setup_logging(verbose=verbose)
    try:
        config = load_config(_parse_config_path(args))
        setup_logging_from_config(config, verbose=verbose)
        manager = SessionManager.from_config(config.session)
    except ConfigError as exc:
        _console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        sys.exit(1)
    return config, manager


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def run_server(config: AppConfig, manager: SessionManager) -> None:
    """Serve HTTP (and sweep, if enabled) until SIGINT/SIGTERM."""
    server = SessionServer(config, manager)
    sweeper = SweepObserver(config.sweep, manager)
    stop_event = asyncio.Event()

    if not _IS_WINDOWS:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

    await server.start()
    await sweeper.start()
    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down...")
        await sweeper.stop()
        await server.stop()


def _cmd_serve(args: list[str], verbose: bool) -> None:
    config, manager = _bootstrap(args, verbose)
    try:
        asyncio.run(run_server(config, manager))
    except KeyboardInterrupt:
        logger.info("Interrupted")


def _cmd_sweep(args: list[str], verbose: bool) -> None:
    config, manager = _bootstrap(args, verbose)
    try:
        with log_context(operation="cli"):
            deleted = asyncio.run(manager.delete_expired_sessions())
    except StorageFaultError as exc:
        _console.print(f"[bold red]Sweep failed:[/bold red] {exc}")
        sys.exit(1)
    _console.print(
        f"[green]Removed {deleted} expired session(s)[/green] "
        f"[dim](backend={config.session.backend})[/dim]"
    )


def _cmd_status(args: list[str], verbose: bool) -> None:
    config, manager = _bootstrap(args, verbose)
    try:
        ids = asyncio.run(manager.storage.list_session_ids())
    except StorageFaultError as exc:
        _console.print(f"[bold red]Cannot read session storage:[/bold red] {exc}")
        sys.exit(1)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold", min_width=16)
    table.add_column()
    table.add_row("Backend", f"[cyan]{config.session.backend}[/cyan]")
    table.add_row("TTL", f"{config.session.expires_in_minutes} min")
    if config.session.backend == "file":
        table.add_row("Storage", f"[cyan]{config.session.storage_dir}[/cyan]")
    table.add_row("Stored sessions", str(len(ids)))
    table.add_row("Listen", f"{config.server.host}:{config.server.port}")
    sweep = f"every {config.sweep.interval_seconds}s" if config.sweep.enabled else "[dim]off[/dim]"
    table.add_row("Sweep", sweep)
    _console.print(Panel(table, title="[bold]Status[/bold]", border_style="blue", padding=(1, 0)))


def _print_usage(_args: list[str], _verbose: bool) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold green", min_width=28)
    table.add_column()
    table.add_row("sessionkeeper [serve]", "Run the HTTP server (default)")
    table.add_row("sessionkeeper sweep", "Delete expired sessions once and exit")
    table.add_row("sessionkeeper status", "Show backend, storage, and session count")
    table.add_row("sessionkeeper help", "Show this message")
    table.add_row("--config PATH", f"Config file (default: {DEFAULT_CONFIG_PATH})")
    table.add_row("-v, --verbose", "Verbose logging output")
    _console.print(
        Panel(table, title="[bold]Commands[/bold]", border_style="blue", padding=(1, 0)),
    )


_COMMANDS = {
    "serve": _cmd_serve,
    "sweep": _cmd_sweep,
    "status": _cmd_status,
    "help": _print_usage,
}


def _positional(args: list[str]) -> list[str]:
    """CLI args minus flags and the value following ``--config``."""
    out: list[str] = []
    skip = False
    for arg in args:
        if skip:
            skip = False
            continue
        if arg == "--config":
            skip = True
            continue
        if not arg.startswith("-"):
            out.append(arg)
    return out


def main() -> None:
    """CLI entry point."""
    args = sys.argv[1:]
    verbose = "--verbose" in args or "-v" in args
    commands = _positional(args)
    if "--help" in args or "-h" in args:
        commands.insert(0, "help")

    name = commands[0] if commands else "serve"
    handler = _COMMANDS.get(name, _print_usage)
    handler(args, verbose)


if __name__ == "__main__":
    main()
