"""
Pydantic models for menu catalogs.

The JSON shape is shared with menus published by other clients:

    {"version": 2, "menus": [{"id": "lunch", "name": "Lunch",
      "items": [{"id": "rice", "name": "Fried Rice", "price": 18}],
      "allowOrder": true, "publicId": "..."}]}

A single published menu carries a discriminator instead of a menu list:

    {"version": 1, "kind": "menu-public", "publicId": "...", "id": "lunch", ...}
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
)

CATALOG_VERSION = 2
PUBLISHED_MENU_VERSION = 1
PUBLISHED_MENU_KIND = "menu-public"


def _price_to_json(v: Decimal) -> Union[int, float]:
    if v == v.to_integral_value():
        return int(v)
    return float(v)


Price = Annotated[
    Decimal,
    Field(ge=0),
    PlainSerializer(_price_to_json, when_used="json"),
]


def generate_public_id() -> str:
    """High-entropy, URL-safe token granting anonymous access to one menu."""
    return secrets.token_urlsafe(18)


class CatalogModel(BaseModel):
    """Base for catalog payloads: lenient on input, camelCase on output."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )


class MenuItem(CatalogModel):
    id: str = ""
    name: str = ""
    # Image data URL or attachment URL; passed through untouched.
    image: Optional[str] = None
    price: Optional[Price] = None


class Menu(CatalogModel):
    id: str = ""
    name: str = ""
    items: List[MenuItem] = Field(default_factory=list)
    allow_public_order: bool = Field(
        default=False,
        validation_alias=AliasChoices("allowOrder", "allowPublicOrder", "allow_public_order"),
        serialization_alias="allowOrder",
    )
    public_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("publicId", "public_id"),
        serialization_alias="publicId",
    )

    def item(self, item_id: str) -> Optional[MenuItem]:
        for it in self.items:
            if it.id == item_id:
                return it
        return None

    def with_public_id(self) -> "Menu":
        """Copy of this menu that is guaranteed to carry a ``public_id``."""
        if self.public_id:
            return self.model_copy(deep=True)
        return self.model_copy(update={"public_id": generate_public_id()}, deep=True)


class PublishedMenu(Menu):
    """One menu as published for anonymous ordering."""

    version: int = PUBLISHED_MENU_VERSION
    kind: Literal["menu-public"] = PUBLISHED_MENU_KIND

    @classmethod
    def from_menu(cls, menu: Menu) -> "PublishedMenu":
        data = menu.model_dump()
        return cls.model_validate(data)

    def to_menu(self) -> Menu:
        return Menu.model_validate(self.model_dump(exclude={"version", "kind"}))


class Catalog(CatalogModel):
    version: int = CATALOG_VERSION
    menus: List[Menu] = Field(default_factory=list)

    def menu(self, menu_id: str) -> Optional[Menu]:
        for m in self.menus:
            if m.id == menu_id:
                return m
        return None

    def ensure_public_ids(self) -> "Catalog":
        """
        Copy in which every menu open for public ordering has a ``public_id``.
        Menus that already carry one keep it.
        """
        menus = [
            m.with_public_id() if m.allow_public_order and not m.public_id else m
            for m in self.menus
        ]
        return self.model_copy(update={"menus": menus}, deep=True)


def dump_json(model: CatalogModel, *, indent: Optional[int] = None) -> str:
    return model.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
