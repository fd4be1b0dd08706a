"""Main Typer application — operator tooling around the Coordinator.

Entry point: ``wsrouter`` (configured via pyproject.toml [project.scripts]).

Commands: listen, send, config.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from wsrouter.config import config
from wsrouter.core.coordinator import Coordinator, InvalidURLError, validate_url
from wsrouter.models.connection import ConnectionState

console = Console()

app = typer.Typer(
    name="wsrouter",
    help="wsrouter: topic routing over a single WebSocket connection.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

_POLL_SECONDS = 0.05


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _checked_url(url: str) -> str:
    try:
        return validate_url(url, config.allowed_schemes)
    except InvalidURLError as exc:
        raise typer.BadParameter(str(exc), param_hint="URL") from exc


def _wait_for(coordinator: Coordinator, timeout: float) -> bool:
    """Block until the coordinator leaves CONNECTING; True if connected."""
    deadline = time.monotonic() + timeout
    while coordinator.state == ConnectionState.CONNECTING:
        if time.monotonic() >= deadline:
            break
        time.sleep(_POLL_SECONDS)
    return coordinator.is_connected


@app.command(name="listen", help="Subscribe to identifiers and print what arrives.")
def listen_cmd(
    url: str = typer.Argument(..., help="ws:// or wss:// endpoint."),
    identifiers: list[str] = typer.Argument(..., help="Identifiers to subscribe to."),
    duration: Optional[float] = typer.Option(
        None, help="Stop after this many seconds (default: until disconnected)."
    ),
    log_level: str = typer.Option(config.log_level, help="Logging level."),
) -> None:
    """Print every payload routed to IDENTIFIERS until the connection ends."""
    _configure_logging(log_level)
    url = _checked_url(url)

    coordinator = Coordinator()
    for identifier in identifiers:

        def _print(payload: dict[str, Any], identifier: str = identifier) -> None:
            console.print(f"[cyan]{identifier}[/cyan]")
            console.print_json(data=payload)

        coordinator.subscribe(identifier, _print)

    coordinator.connect(url)
    if not _wait_for(coordinator, config.open_timeout):
        console.print(f"[red]Could not connect to {url}[/red]")
        coordinator.disconnect()
        raise typer.Exit(code=1)

    deadline = None if duration is None else time.monotonic() + duration
    try:
        while coordinator.is_connected:
            if deadline is not None and time.monotonic() >= deadline:
                break
            time.sleep(_POLL_SECONDS)
    except KeyboardInterrupt:
        pass
    finally:
        coordinator.disconnect()


@app.command(name="send", help="Send one JSON payload to a route.")
def send_cmd(
    url: str = typer.Argument(..., help="ws:// or wss:// endpoint."),
    route: str = typer.Argument(..., help="Route to send to."),
    data: str = typer.Argument(..., help="JSON payload."),
    log_level: str = typer.Option(config.log_level, help="Logging level."),
) -> None:
    """Connect, send DATA on ROUTE, and disconnect."""
    _configure_logging(log_level)
    url = _checked_url(url)
    try:
        content = json.loads(data)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Invalid JSON: {exc}", param_hint="DATA") from exc

    with Coordinator() as coordinator:
        coordinator.connect(url)
        if not _wait_for(coordinator, config.open_timeout):
            console.print(f"[red]Could not connect to {url}[/red]")
            raise typer.Exit(code=1)
        if not coordinator.send(content, route):
            console.print(f"[red]Message for route {route!r} was not sent[/red]")
            raise typer.Exit(code=1)

    console.print(f"[green]Sent[/green] to route [cyan]{route}[/cyan]")


@app.command(name="config", help="Show the effective settings.")
def config_cmd() -> None:
    """Print the settings resolved from WSROUTER_* variables and .env."""
    table = Table(title="wsrouter settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for name, value in config.model_dump().items():
        table.add_row(name, repr(value))
    console.print(table)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
