"""Public menu commands for the menunotes CLI."""

from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from menunotes.services.menu.content import format_price
from menunotes.services.notes import NotesError

from ..utils.context import fail, get_service, parse_quantities

app = typer.Typer(help="Public menu commands")
console = Console()


@app.command("resolve")
def resolve(
    ctx: typer.Context,
    public_id: str,
    note: Optional[str] = typer.Option(None, "--note", help="Note id from the link"),
):
    """Find the published menu behind a public id."""
    api = get_service(ctx)
    found = api.resolver().resolve(public_id, note)
    if found is None:
        console.print("[yellow]Menu unavailable[/yellow]")
        raise typer.Exit(1)

    menu = found.menu
    source = f"note {found.note.id}" if found.note else "local catalog"
    console.print(f"[bold]{menu.name}[/bold] ({menu.id}) via {found.tier}, {source}")
    table = Table("Item ID", "Name", "Price")
    for item in menu.items:
        price = "" if item.price is None else f"¥{format_price(item.price)}"
        table.add_row(item.id, item.name, price)
    console.print(table)


@app.command("order")
def order(
    ctx: typer.Context,
    public_id: str,
    items: List[str] = typer.Argument(..., help="ITEM_ID=QTY pairs"),
    customer: str = typer.Option(..., "--customer", "-c", help="Name to order under"),
    note: Optional[str] = typer.Option(None, "--note", help="Note id from the link"),
    remark: str = typer.Option("", "--remark", "-r", help="Free-text note"),
):
    """Order anonymously through the public surface."""
    api = get_service(ctx)
    requested = [(item_id, "", qty) for item_id, qty in parse_quantities(items)]
    try:
        order_id = api.notes.place_public_order(
            public_id,
            requested,
            customer_name=customer,
            note_id=note,
            remark=remark,
        )
    except NotesError as exc:
        fail(str(exc))
    console.print(f"Created order note [bold]{order_id}[/bold]")
