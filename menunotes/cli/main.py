#!/usr/bin/env python
"""Command line interface for menunotes."""

from typing import Optional

import typer
from rich.console import Console

from menunotes.cli.commands import menus, orders, public
from menunotes.cli.utils.context import CliState, setup_logging

app = typer.Typer(help="Menus and orders kept as notes")
console = Console()

# Add command groups
app.add_typer(orders.app, name="orders")
app.add_typer(menus.app, name="menus")
app.add_typer(public.app, name="public")


@app.callback()
def callback(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None, "--base-url", envvar="MENUNOTES_BASE_URL", help="Note service URL"
    ),
    token: Optional[str] = typer.Option(
        None, "--token", envvar="MENUNOTES_ACCESS_TOKEN", help="Access token"
    ),
    config_dir: Optional[str] = typer.Option(
        None, "--config-dir", help="Directory holding config.json and catalogs"
    ),
    namespace: Optional[str] = typer.Option(
        None, "--namespace", "-n", help="Catalog namespace"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logs"
    ),
):
    """Keep menu catalogs and take orders on top of a note service."""
    setup_logging(verbose)
    ctx.obj = CliState(
        overrides={
            "base_url": base_url,
            "access_token": token,
            "config_dir": config_dir,
            "catalog_namespace": namespace,
        },
        verbose=verbose,
    )


@app.command("serve")
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
):
    """Serve the public menu API."""
    import uvicorn

    from menunotes.api import create_app
    from menunotes.config import ConfigError, load_config

    state: CliState = ctx.obj
    try:
        config = load_config(**state.overrides)
    except ConfigError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(1)
    uvicorn.run(create_app(config), host=host, port=port)


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
