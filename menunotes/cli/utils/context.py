"""Service construction and shared option parsing for the CLI commands."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import typer
from dateutil import parser as date_parser
from rich.console import Console
from rich.logging import RichHandler

from menunotes import MenuNotesService
from menunotes.config import ConfigError, load_config

console = Console()


@dataclass
class CliState:
    """Options given to the top-level callback, applied over the config."""

    overrides: Dict[str, Any] = field(default_factory=dict)
    verbose: bool = False


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=True,
                show_time=True,
                log_time_format="%H:%M:%S",
            )
        ],
        force=True,
    )


def get_service(ctx: typer.Context) -> MenuNotesService:
    """MenuNotesService for the effective configuration."""
    state: CliState = ctx.obj if isinstance(ctx.obj, CliState) else CliState()
    try:
        config = load_config(**state.overrides)
    except ConfigError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(1)
    return MenuNotesService(config)


def fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(1)


def parse_day(value: Optional[str]) -> Optional[date]:
    """Parse a user-supplied date such as ``2024-05-01`` or ``May 1``."""
    if not value:
        return None
    try:
        return date_parser.parse(value).date()
    except (ValueError, OverflowError):
        raise typer.BadParameter(f"Not a date: {value}")


def parse_quantities(pairs: List[str]) -> List[Tuple[str, int]]:
    """``ITEM=QTY`` arguments as ``(item, qty)`` pairs; a bare ITEM means 1."""
    out: List[Tuple[str, int]] = []
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        key = key.strip()
        if not key:
            raise typer.BadParameter(f"Missing item in {pair!r}")
        if not sep:
            out.append((key, 1))
            continue
        try:
            out.append((key, int(raw)))
        except ValueError:
            raise typer.BadParameter(f"Quantity must be an integer: {pair!r}")
    return out
