"""Menu catalog commands for the menunotes CLI."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from menunotes.services.menu.content import format_price
from menunotes.services.menu.errors import MenuError, PublishError
from menunotes.services.notes import NotesError, Visibility

from ..utils.context import fail, get_service

app = typer.Typer(help="Menu catalog commands")
console = Console()


@app.command("list")
def list_menus(ctx: typer.Context):
    """List local menus."""
    api = get_service(ctx)
    try:
        catalog = api.store.load()
    except MenuError as exc:
        fail(str(exc))
    if not catalog.menus:
        console.print("No menus found")
        return

    table = Table("ID", "Name", "Items", "Public", "Public ID")
    for menu in catalog.menus:
        table.add_row(
            menu.id,
            menu.name,
            str(len(menu.items)),
            "yes" if menu.allow_public_order else "no",
            menu.public_id or "",
        )
    console.print(table)


@app.command("show")
def show_menu(ctx: typer.Context, menu_id: str):
    """Show the items of a menu."""
    api = get_service(ctx)
    try:
        menu = api.editor.menu(menu_id)
    except MenuError as exc:
        fail(str(exc))

    console.print(f"[bold]{menu.name}[/bold] ({menu.id})")
    table = Table("Item ID", "Name", "Price")
    for item in menu.items:
        price = "" if item.price is None else f"¥{format_price(item.price)}"
        table.add_row(item.id, item.name, price)
    console.print(table)


@app.command("add")
def add_menu(ctx: typer.Context, name: str):
    """Create an empty menu."""
    api = get_service(ctx)
    try:
        menu = api.editor.add_menu(name)
    except MenuError as exc:
        fail(str(exc))
    console.print(f"Created menu [bold]{menu.id}[/bold]")


@app.command("remove")
def remove_menu(
    ctx: typer.Context,
    menu_id: str,
    force: bool = typer.Option(
        False, "--force", "-f", help="Delete without confirmation"
    ),
):
    """Delete a menu from the local catalog."""
    if not force:
        confirmed = typer.confirm(f"Are you sure you want to delete menu {menu_id}?")
        if not confirmed:
            console.print("Deletion cancelled")
            return

    api = get_service(ctx)
    try:
        api.editor.delete_menu(menu_id)
    except MenuError as exc:
        fail(str(exc))
    console.print(f"Deleted menu [bold]{menu_id}[/bold]")


@app.command("add-item")
def add_item(
    ctx: typer.Context,
    menu_id: str,
    name: str,
    price: Optional[str] = typer.Option(None, "--price", help="Unit price"),
    image: Optional[str] = typer.Option(None, "--image", help="Image URL"),
):
    """Add one item to a menu."""
    api = get_service(ctx)
    try:
        item = api.editor.add_item(menu_id, name, price=price, image=image)
    except MenuError as exc:
        fail(str(exc))
    console.print(f"Added item [bold]{item.id}[/bold] to {menu_id}")


@app.command("update-item")
def update_item(
    ctx: typer.Context,
    menu_id: str,
    item_id: str,
    name: Optional[str] = typer.Option(None, "--name"),
    price: Optional[str] = typer.Option(
        None, "--price", help="Unit price; 'none' clears it"
    ),
):
    """Rename an item or change its price."""
    api = get_service(ctx)
    changes = {}
    if price is not None:
        changes["price"] = None if price.lower() == "none" else price
    try:
        item = api.editor.update_item(menu_id, item_id, name=name, **changes)
    except MenuError as exc:
        fail(str(exc))
    console.print(f"Updated item [bold]{item.id}[/bold]")


@app.command("remove-item")
def remove_item(ctx: typer.Context, menu_id: str, item_id: str):
    """Delete one item from a menu."""
    api = get_service(ctx)
    try:
        api.editor.delete_item(menu_id, item_id)
    except MenuError as exc:
        fail(str(exc))
    console.print(f"Deleted item [bold]{item_id}[/bold]")


@app.command("bulk-add")
def bulk_add(
    ctx: typer.Context,
    menu_id: str,
    source: typer.FileText = typer.Argument(
        "-", help="File with one item name per line ('-' for stdin)"
    ),
):
    """Add one item per line of text."""
    api = get_service(ctx)
    text = source.read()
    try:
        items = api.editor.bulk_add_items(menu_id, text)
    except MenuError as exc:
        fail(str(exc))
    console.print(f"Added [bold]{len(items)}[/bold] item(s) to {menu_id}")


@app.command("public")
def set_public(
    ctx: typer.Context,
    menu_id: str,
    enable: bool = typer.Option(
        True, "--enable/--disable", help="Open or close anonymous ordering"
    ),
    publish: bool = typer.Option(
        True, "--publish/--no-publish", help="Publish the menu when enabling"
    ),
):
    """Open or close a menu for anonymous ordering."""
    api = get_service(ctx)
    try:
        menu, record = api.set_public_order(menu_id, enable, publish=publish)
    except PublishError as exc:
        if enable:
            fail(f"Public ordering enabled but publishing failed: {exc}")
        fail(f"Public ordering disabled but withdrawing failed: {exc}")
    except MenuError as exc:
        fail(str(exc))
    state = "open" if menu.allow_public_order else "closed"
    console.print(f"Menu [bold]{menu.id}[/bold] is {state} for public ordering")
    if record is not None:
        console.print(
            f"Published as note [bold]{record.note_id}[/bold] ({record.strategy})"
        )
        console.print(api.public_link(menu.id, record.note_id))


@app.command("link")
def link(
    ctx: typer.Context,
    menu_id: str,
    note: Optional[str] = typer.Option(None, "--note", help="Published note id"),
):
    """Print the public ordering link of a menu."""
    api = get_service(ctx)
    try:
        console.print(api.public_link(menu_id, note))
    except MenuError as exc:
        fail(str(exc))


@app.command("export")
def export(
    ctx: typer.Context,
    public: bool = typer.Option(
        False, "--public", help="Publish as a PUBLIC note instead of PROTECTED"
    ),
):
    """Publish the whole catalog as a menu-def note."""
    api = get_service(ctx)
    visibility = Visibility.PUBLIC if public else Visibility.PROTECTED
    try:
        record = api.publish_catalog(visibility=visibility)
    except MenuError as exc:
        fail(str(exc))
    console.print(
        f"Exported catalog to note [bold]{record.note_id}[/bold] ({record.strategy})"
    )


@app.command("import")
def import_menus(
    ctx: typer.Context,
    pick: Optional[int] = typer.Option(
        None, "--pick", help="Candidate number to import without prompting"
    ),
):
    """Import menus from a menu-def note."""
    api = get_service(ctx)
    try:
        candidates = api.import_candidates()
    except NotesError as exc:
        fail(str(exc))
    if not candidates:
        console.print("No #menu-def notes found")
        return

    if pick is None:
        table = Table("#", "Note", "Menus", "Preview")
        for i, cand in enumerate(candidates):
            table.add_row(
                str(i), cand.note.id, str(cand.menu_count), ", ".join(cand.preview)
            )
        console.print(table)
        pick = typer.prompt("Which candidate would you like to import?", type=int)

    if pick < 0 or pick >= len(candidates):
        fail("Invalid candidate number")

    try:
        before = len(api.store.load().menus)
        catalog = api.apply_import(candidates[pick])
    except MenuError as exc:
        fail(str(exc))
    console.print(f"Imported [bold]{len(catalog.menus) - before}[/bold] menu(s)")
