"""Command modules for the menunotes CLI."""

from menunotes.cli.commands import menus, orders, public

__all__ = ["menus", "orders", "public"]
