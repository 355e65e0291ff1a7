"""Longbox CLI entry point."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from longbox.api import create_app, run_server
from longbox.config import DEFAULT_CONFIG_PATH, LongboxConfig, load_config, write_default_config
from longbox.errors import ScanError
from longbox.logging_config import setup_logging
from longbox.monitor import start_file_monitoring
from longbox.scanner import scan_library
from longbox.service import ComicService


__version__ = "0.1.0"

app = typer.Typer(add_completion=False, help="Longbox comic server CLI")
logger = logging.getLogger("longbox")

STARTUP_BANNER = r"""
 _                    _
| |    ___  _ __   __| |__   _____  __
| |   / _ \| '_ \ / _` | '_ \/ _ \ \/ /
| |__| (_) | | | | (_| | |_) | (_) >  <
|_____\___/|_| |_|\__, |_.__/\___/_/\_\
                  |___/
"""


def _ensure_config() -> LongboxConfig:
    try:
        return load_config()
    except FileNotFoundError:
        typer.echo("[ERROR] config.ini not found. Run: longbox init --library /path/to/comics")
        raise typer.Exit(code=1)


@app.command()
def init(
    library: Path = typer.Option(..., "--library", help="Path to your comics folder"),
    name: str = typer.Option("My Comics", "--name", help="Library name"),
) -> None:
    """Initialize config.ini with default settings."""
    config_path = write_default_config(library, name, DEFAULT_CONFIG_PATH)
    typer.echo(f"[OK] Config created at {config_path}")


@app.command()
def scan(
    show_dropped: bool = typer.Option(False, "--show-dropped", help="List files left out of the catalog"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every archive as it is scanned"),
) -> None:
    """Scan the library once and report what would be served."""
    setup_logging("DEBUG" if verbose else "INFO", verbose_scan=verbose)

    config = _ensure_config()
    try:
        catalog = scan_library(config.library_path, config.scanner.ignore_patterns)
    except ScanError as exc:
        typer.echo(f"[ERROR] {exc}")
        raise typer.Exit(code=1)

    typer.echo(
        "✓ Scan completed: "
        f"{len(catalog.comics)} comics in {catalog.folder_count()} folders, "
        f"{len(catalog.dropped)} dropped."
    )
    if show_dropped:
        for dropped in catalog.dropped:
            typer.echo(f"  ✗ {dropped.path}: {dropped.reason}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Server host"),
    port: Optional[int] = typer.Option(None, "--port", help="Server port"),
    no_watch: bool = typer.Option(False, "--no-watch", help="Disable file monitoring"),
) -> None:
    """Scan the library, then serve it with optional file monitoring."""
    setup_logging()

    typer.echo(typer.style(STARTUP_BANNER, fg=typer.colors.CYAN, bold=True))
    config = _ensure_config()
    service = ComicService(config.library_path, ignore_patterns=config.scanner.ignore_patterns)

    logger.info("Running initial library scan...")
    try:
        service.rescan()
    except ScanError as exc:
        logger.error(f"Initial scan failed: {exc}")
        raise typer.Exit(code=1)

    monitor = None
    if not no_watch and config.monitoring.enabled:
        monitor = start_file_monitoring(config, service)
    elif no_watch:
        logger.info("File monitoring disabled")

    api = create_app(service, config, dispatcher=monitor.dispatcher if monitor else None)
    try:
        run_server(api, host or config.server_host, port or config.server_port)
    except KeyboardInterrupt:
        pass
    finally:
        if monitor:
            monitor.stop()
            monitor.join()


if __name__ == "__main__":
    app()
