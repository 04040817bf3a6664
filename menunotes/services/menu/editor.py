"""Catalog-editing operations. Every mutation is persisted before returning."""

from __future__ import annotations

import logging
import secrets
import time
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from .errors import DuplicateMenuError, MenuError, UnknownMenuError
from .merger import slugify
from .models import Catalog, Menu, MenuItem, generate_public_id
from .store import CatalogStore

LOGGER = logging.getLogger(__name__)

_UNSET = object()


def _millis() -> int:
    return int(time.time() * 1000)


def new_item_id() -> str:
    return f"i-{_millis()}-{secrets.token_hex(2)}"


def _price(value) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise MenuError(f"Invalid price: {value}") from exc
    if not price.is_finite() or price < 0:
        raise MenuError(f"Price must be a non-negative number: {value}")
    return price


class CatalogEditor:
    def __init__(self, store: CatalogStore):
        self._store = store

    @property
    def catalog(self) -> Catalog:
        return self._store.load()

    def menu(self, menu_id: str) -> Menu:
        menu = self.catalog.menu(menu_id)
        if menu is None:
            raise UnknownMenuError(f"Unknown menu: {menu_id}")
        return menu

    # -------------------------------- menus ---------------------------------

    def add_menu(self, name: str) -> Menu:
        """
        Add an empty menu. Its id is the slug of ``name`` (``menu-<millis>``
        when the name has no slug-able characters).
        """
        name = (name or "").strip()
        if not name:
            raise MenuError("Menu name is required.")
        menu_id = slugify(name) or f"menu-{_millis()}"
        catalog = self.catalog
        if catalog.menu(menu_id) is not None:
            raise DuplicateMenuError(f"Menu id already exists: {menu_id}")
        menu = Menu(id=menu_id, name=name, public_id=generate_public_id())
        self._save(catalog, [*catalog.menus, menu])
        LOGGER.info("menu.editor.menu_added id=%s", menu_id)
        return menu

    def delete_menu(self, menu_id: str) -> None:
        catalog = self.catalog
        remaining = [m for m in catalog.menus if m.id != menu_id]
        if len(remaining) == len(catalog.menus):
            raise UnknownMenuError(f"Unknown menu: {menu_id}")
        self._save(catalog, remaining)
        LOGGER.info("menu.editor.menu_deleted id=%s", menu_id)

    def set_public_order(self, menu_id: str, allow: bool) -> Menu:
        """Open or close a menu for anonymous ordering. Keeps an existing ``public_id``."""
        menu = self.menu(menu_id)
        updated = menu.model_copy(
            update={
                "allow_public_order": allow,
                "public_id": menu.public_id or generate_public_id(),
            }
        )
        self._replace(updated)
        return updated

    def set_public_id(self, menu_id: str, public_id: str) -> Menu:
        updated = self.menu(menu_id).model_copy(update={"public_id": public_id})
        self._replace(updated)
        return updated

    # -------------------------------- items ---------------------------------

    def add_item(
        self,
        menu_id: str,
        name: str = "",
        *,
        price=None,
        image: Optional[str] = None,
    ) -> MenuItem:
        item = MenuItem(
            id=new_item_id(), name=name.strip(), price=_price(price), image=image
        )
        menu = self.menu(menu_id)
        self._replace(menu.model_copy(update={"items": [*menu.items, item]}))
        return item

    def bulk_add_items(self, menu_id: str, text: str) -> List[MenuItem]:
        """Add one item per non-blank line of ``text``."""
        menu = self.menu(menu_id)
        items = [
            MenuItem(id=new_item_id(), name=line.strip())
            for line in text.splitlines()
            if line.strip()
        ]
        if items:
            self._replace(menu.model_copy(update={"items": [*menu.items, *items]}))
        LOGGER.info("menu.editor.bulk_added menu=%s n=%d", menu_id, len(items))
        return items

    def update_item(
        self,
        menu_id: str,
        item_id: str,
        *,
        name: Optional[str] = None,
        price=_UNSET,
        image=_UNSET,
    ) -> MenuItem:
        """Patch an item. ``price``/``image`` may be set to None to clear them."""
        menu = self.menu(menu_id)
        current = menu.item(item_id)
        if current is None:
            raise UnknownMenuError(f"Unknown item {item_id} in menu {menu_id}")
        patch = {}
        if name is not None:
            patch["name"] = name.strip()
        if price is not _UNSET:
            patch["price"] = _price(price)
        if image is not _UNSET:
            patch["image"] = image
        updated = current.model_copy(update=patch)
        items = [updated if it.id == item_id else it for it in menu.items]
        self._replace(menu.model_copy(update={"items": items}))
        return updated

    def delete_item(self, menu_id: str, item_id: str) -> None:
        menu = self.menu(menu_id)
        items = [it for it in menu.items if it.id != item_id]
        if len(items) == len(menu.items):
            raise UnknownMenuError(f"Unknown item {item_id} in menu {menu_id}")
        self._replace(menu.model_copy(update={"items": items}))

    # ------------------------------- helpers --------------------------------

    def replace_catalog(self, catalog: Catalog) -> Catalog:
        return self._store.save(catalog)

    def _replace(self, menu: Menu) -> None:
        catalog = self.catalog
        self._save(catalog, [menu if m.id == menu.id else m for m in catalog.menus])

    def _save(self, catalog: Catalog, menus: List[Menu]) -> Catalog:
        return self._store.save(catalog.model_copy(update={"menus": menus}))
