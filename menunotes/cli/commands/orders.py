"""Order commands for the menunotes CLI."""

from decimal import Decimal
from typing import List, Optional

import typer
from dateutil import tz
from rich.console import Console
from rich.table import Table

from menunotes.services.menu import ledger as ledger_mod
from menunotes.services.menu.content import format_price
from menunotes.services.menu.errors import MenuError
from menunotes.services.menu.ledger import ParsedOrder
from menunotes.services.notes import NotesError

from ..utils.context import fail, get_service, parse_day, parse_quantities

app = typer.Typer(help="Order commands")
console = Console()


def _money(value: Optional[Decimal]) -> str:
    return "" if value is None else f"¥{format_price(value)}"


def _load(
    ctx: typer.Context,
    *,
    pages: int,
    menu: Optional[str],
    days: Optional[int],
    since: Optional[str],
    until: Optional[str],
) -> List[ParsedOrder]:
    api = get_service(ctx)
    try:
        orders = api.ledger().refresh(pages=pages)
    except NotesError as exc:
        fail(str(exc))
    orders = ledger_mod.filter_by_menu(orders, menu)
    start, end = parse_day(since), parse_day(until)
    if days:
        start, end = ledger_mod.preset_range(days)
    return ledger_mod.filter_by_date(orders, start, end, tz=tz.tzlocal())


@app.command("list")
def list_orders(
    ctx: typer.Context,
    menu: Optional[str] = typer.Option(None, "--menu", "-m", help="Only this menu id"),
    days: Optional[int] = typer.Option(
        None, "--days", "-d", help="Last N days, today included (1, 7, 30, ...)"
    ),
    since: Optional[str] = typer.Option(None, help="First day (inclusive)"),
    until: Optional[str] = typer.Option(None, help="Last day (inclusive)"),
    pages: int = typer.Option(1, "--pages", "-p", help="Note pages to load"),
):
    """List orders, newest first."""
    orders = _load(ctx, pages=pages, menu=menu, days=days, since=since, until=until)
    if not orders:
        console.print("No orders found")
        return

    table = Table("Time", "Menu", "Items", "Qty", "Amount", "Note")
    for order in orders:
        when = order.create_time
        table.add_row(
            when.astimezone(tz.tzlocal()).strftime("%Y-%m-%d %H:%M") if when else "",
            order.menu_id or "",
            ", ".join(f"{it.name} × {it.quantity}" for it in order.items),
            str(order.total_quantity),
            _money(order.total_amount),
            order.source_note.id,
        )
    console.print(table)


@app.command("summary")
def summary(
    ctx: typer.Context,
    menu: Optional[str] = typer.Option(None, "--menu", "-m", help="Only this menu id"),
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Last N days"),
    since: Optional[str] = typer.Option(None, help="First day (inclusive)"),
    until: Optional[str] = typer.Option(None, help="Last day (inclusive)"),
    pages: int = typer.Option(1, "--pages", "-p", help="Note pages to load"),
):
    """Quantity and revenue per item."""
    orders = _load(ctx, pages=pages, menu=menu, days=days, since=since, until=until)
    rows = ledger_mod.aggregate_by_item(orders)
    if not rows:
        console.print("No orders found")
        return

    table = Table("Item", "Qty", "Revenue")
    for row in rows:
        table.add_row(row.name, str(row.quantity), _money(row.revenue))
    console.print(table)
    console.print(
        f"[bold]{len(orders)}[/bold] orders, "
        f"[bold]{sum(o.total_quantity for o in orders)}[/bold] items"
    )


@app.command("submit")
def submit(
    ctx: typer.Context,
    menu_id: str,
    items: List[str] = typer.Argument(..., help="ITEM_ID=QTY pairs"),
    remark: str = typer.Option("", "--remark", "-r", help="Free-text note"),
    customer: Optional[str] = typer.Option(None, "--customer", "-c"),
):
    """Place an order against a local menu."""
    api = get_service(ctx)
    quantities = {}
    for item_id, qty in parse_quantities(items):
        quantities[item_id] = quantities.get(item_id, 0) + qty
    try:
        note = api.submit_order(
            menu_id, quantities, remark=remark, customer_name=customer
        )
    except MenuError as exc:
        fail(str(exc))
    console.print(f"Created order note [bold]{note.id}[/bold]")


@app.command("clear-today")
def clear_today(
    ctx: typer.Context,
    pages: int = typer.Option(1, "--pages", "-p", help="Note pages to load"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Delete without confirmation"
    ),
):
    """Delete today's order notes."""
    api = get_service(ctx)
    ledger = api.ledger()
    try:
        ledger.refresh(pages=pages)
    except NotesError as exc:
        fail(str(exc))
    today = ledger_mod.orders_today(ledger.orders, tz=tz.tzlocal())
    if not today:
        console.print("No orders today")
        return
    if not force:
        confirmed = typer.confirm(f"Delete {len(today)} order(s) from today?")
        if not confirmed:
            console.print("Deletion cancelled")
            return

    result = ledger.delete_orders(today)
    console.print(f"Deleted [bold]{result.success_count}[/bold] order(s)")
    if result.failure_count:
        console.print(
            f"[bold yellow]Warning:[/bold yellow] {result.failure_count} deletion(s) failed"
        )
        for note_id, reason in result.failed:
            console.print(f"  {note_id}: {reason}")
    if result.reload_error:
        fail(f"Orders deleted but reload failed: {result.reload_error}")
