"""Example of how to use the menu and order services."""

import argparse
import logging

from rich import print as rprint
from rich.console import Console

from menunotes import MenuNotesService, load_config
from menunotes.services.menu import ledger as ledger_mod
from menunotes.services.notes import NotesError

console = Console()


def main():
    """Main function."""
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(description="Menu and order example.")
    parser.add_argument("--base-url", help="Note service URL.")
    parser.add_argument("--token", help="Access token for the note service.")
    parser.add_argument("--pages", type=int, default=2, help="Note pages to load.")
    args = parser.parse_args()

    api = MenuNotesService(load_config(base_url=args.base_url, access_token=args.token))

    console.rule("Local menus")
    for menu in api.store.load().menus:
        rprint(menu)

    ledger = api.ledger()
    try:
        ledger.refresh(pages=args.pages)
    except NotesError as exc:
        logging.error("Could not load orders: %s", exc)
        return

    console.rule(f"{len(ledger.orders)} orders")
    for row in ledger_mod.aggregate_by_item(ledger.orders):
        rprint(row)


if __name__ == "__main__":
    main()
