"""Merge imported menus into the local catalog without id collisions."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Set, Union

from .models import CATALOG_VERSION, Catalog, Menu, MenuItem, generate_public_id

LOGGER = logging.getLogger(__name__)

IMPORT_SUFFIX = "-imported"

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lowercase ``text`` and collapse every other run of characters into ``-``."""
    return _NON_SLUG.sub("-", (text or "").lower()).strip("-")


def _normalize_item(item: MenuItem) -> MenuItem:
    return item.model_copy(
        update={
            "id": item.id or slugify(item.name or "item"),
            "name": item.name or "",
        },
        deep=True,
    )


def _unique_id(candidate: str, taken: Set[str]) -> str:
    while candidate in taken:
        candidate += IMPORT_SUFFIX
    return candidate


def merge(local: Catalog, incoming: Union[Catalog, Iterable[Menu]]) -> Catalog:
    """
    Append the incoming menus to ``local``.

    Local menus are copied unchanged. An incoming menu whose id is already
    taken (by a local menu, or by one added earlier in this merge) gets
    ``-imported`` appended until it is unique. Menus open for public
    ordering leave with a ``public_id``.
    """
    menus_in: List[Menu] = list(
        incoming.menus if isinstance(incoming, Catalog) else incoming
    )
    merged: List[Menu] = [m.model_copy(deep=True) for m in local.menus]
    taken: Set[str] = {m.id for m in merged}

    for im in menus_in:
        new_id = _unique_id(im.id or slugify(im.name or "menu"), taken)
        if new_id != im.id:
            LOGGER.debug("menu.merge.renamed from=%r to=%s", im.id, new_id)
        taken.add(new_id)
        menu = Menu(
            id=new_id,
            name=im.name or new_id,
            items=[_normalize_item(it) for it in im.items],
            allow_public_order=im.allow_public_order,
            public_id=im.public_id,
        )
        if menu.allow_public_order and not menu.public_id:
            menu = menu.model_copy(update={"public_id": generate_public_id()})
        merged.append(menu)

    LOGGER.info(
        "menu.merge.done local=%d incoming=%d total=%d",
        len(local.menus),
        len(menus_in),
        len(merged),
    )
    return Catalog(version=max(local.version, CATALOG_VERSION), menus=merged)
