"""
Recover structured records from free-text notes.

Everything here is best-effort: malformed lines and payloads are skipped and
reported as ``None``/empty results, never as exceptions.

Grammar recognised in note text:
  - order notes carry the tag ``order`` or the inline token ``#order``
  - the first line may bind an order to a menu with ``#menu:<id>``
  - item lines, first match wins per line:
        - name:"Fried Rice" qty:2 price:18        (legacy)
        - Fried Rice × 2 × ¥18 = ¥36.00           (compact)
  - ``menu-def`` notes carry a catalog, ``menu-pub`` notes a single menu,
    either inline in a fenced json block or as a JSON attachment
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional, Union

from pydantic import ValidationError

from ..notes.models import Note
from .models import PUBLISHED_MENU_KIND, Catalog, PublishedMenu

LOGGER = logging.getLogger(__name__)

ORDER_TAG = "order"
MENU_DEF_TAG = "menu-def"
MENU_PUB_TAG = "menu-pub"

_ORDER_TOKEN = re.compile(r"#order\b")
_MENU_DEF_TOKEN = re.compile(r"#menu-def\b")
_MENU_PUB_TOKEN = re.compile(r"#menu-pub\b")
_MENU_REF = re.compile(r"#menu:([A-Za-z0-9_-]+)")
_PUBLIC_ID_HINT = re.compile(r"publicId:\s*([A-Za-z0-9_-]+)")
_JSON_FENCE = re.compile(r"```\s*json\s*([\s\S]*?)```", re.IGNORECASE)

_LEGACY_LINE = re.compile(
    r'^\s*-\s*name:"([^"]+)"\s+qty:(\d+)(?:\s+price:(\d+(?:\.\d+)?))?'
)
_COMPACT_LINE = re.compile(r"^\s*-\s*(.+?)\s*×\s*(\d+)(?:\s*×\s*¥\s*(\d+(?:\.\d+)?))?")


class RecordKind(Enum):
    ORDER = "order"
    MENU_DEF = "menu-def"
    MENU_PUB = "menu-pub"


@dataclass(frozen=True)
class OrderItem:
    name: str
    quantity: int
    unit_price: Optional[Decimal] = None

    @property
    def amount(self) -> Optional[Decimal]:
        if self.unit_price is None:
            return None
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class OrderContent:
    menu_id: Optional[str]
    items: List[OrderItem] = field(default_factory=list)


def _has(note: Note, tag: str, token: "re.Pattern[str]") -> bool:
    return tag in note.tags or bool(token.search(note.content or ""))


def classify(note: Note) -> Optional[RecordKind]:
    """
    Tell what kind of record ``note`` holds, if any.

    An ``#order`` token on the first line makes the note an order whatever
    follows. Otherwise publication and definition markers win over the
    order marker: a menu payload may contain ``#order`` in an item name.
    """
    first = (note.content or "").split("\n", 1)[0]
    if _ORDER_TOKEN.search(first):
        return RecordKind.ORDER
    if _has(note, MENU_PUB_TAG, _MENU_PUB_TOKEN):
        return RecordKind.MENU_PUB
    if _has(note, MENU_DEF_TAG, _MENU_DEF_TOKEN):
        return RecordKind.MENU_DEF
    if _has(note, ORDER_TAG, _ORDER_TOKEN):
        return RecordKind.ORDER
    return None


def menu_ref(text: str) -> Optional[str]:
    """Menu id from ``#menu:<id>`` on the first line only."""
    first = (text or "").split("\n", 1)[0]
    m = _MENU_REF.search(first)
    return m.group(1) if m else None


def _decimal(raw: Optional[str]) -> Optional[Decimal]:
    if raw is None:
        return None
    try:
        return Decimal(raw)
    except InvalidOperation:
        return None


def parse_item_line(line: str) -> Optional[OrderItem]:
    for pattern in (_LEGACY_LINE, _COMPACT_LINE):
        m = pattern.match(line)
        if not m:
            continue
        name = m.group(1).strip()
        qty = int(m.group(2))
        if not name or qty < 1:
            return None
        return OrderItem(name=name, quantity=qty, unit_price=_decimal(m.group(3)))
    return None


def parse_order(text: str) -> OrderContent:
    """Extract the menu binding and the item lines of an order note."""
    items: List[OrderItem] = []
    for line in (text or "").splitlines():
        parsed = parse_item_line(line)
        if parsed is None:
            continue
        items.append(parsed)
    return OrderContent(menu_id=menu_ref(text), items=items)


def public_id_hint(text: str) -> Optional[str]:
    """``publicId:<token>`` line written into attachment placeholders."""
    m = _PUBLIC_ID_HINT.search(text or "")
    return m.group(1) if m else None


# ---------------------------------------------------------------------------
# JSON payloads
# ---------------------------------------------------------------------------


def strip_code_fence(src: str) -> str:
    """
    Body of a fenced json block, else the text from the first ``{`` or ``[``.
    """
    m = _JSON_FENCE.search(src)
    if m:
        return m.group(1)
    starts = [i for i in (src.find("{"), src.find("[")) if i >= 0]
    if starts:
        return src[min(starts) :]
    return src


def _load_json(payload: Union[str, bytes, None]):
    if payload is None:
        return None
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = bytes(payload).decode("utf-8-sig")
        except UnicodeDecodeError:
            LOGGER.debug("menu.parse.not_utf8 len=%d", len(payload))
            return None
    try:
        return json.loads(strip_code_fence(payload))
    except ValueError:
        LOGGER.debug("menu.parse.bad_json len=%d", len(payload))
        return None


def _catalog_from_data(data) -> Optional[Catalog]:
    try:
        if isinstance(data, list):
            return Catalog.model_validate({"menus": data})
        if isinstance(data, dict) and isinstance(data.get("menus"), list):
            return Catalog.model_validate(data)
    except ValidationError as e:
        LOGGER.debug("menu.parse.catalog_invalid errors=%d", e.error_count())
    return None


def parse_menu_def(payload: Union[str, bytes, None]) -> Optional[Catalog]:
    """
    Catalog from note text or attachment bytes. A bare JSON array is read as
    the menu list of an unversioned catalog.
    """
    return _catalog_from_data(_load_json(payload))


def parse_menu_pub(payload: Union[str, bytes, None]) -> Optional[PublishedMenu]:
    """
    Published menu from note text or attachment bytes. A catalog payload is
    accepted too and yields its first menu.
    """
    data = _load_json(payload)
    if isinstance(data, dict) and data.get("kind") == PUBLISHED_MENU_KIND:
        try:
            return PublishedMenu.model_validate(data)
        except ValidationError as e:
            LOGGER.debug("menu.parse.pub_invalid errors=%d", e.error_count())
            return None
    catalog = _catalog_from_data(data)
    if catalog and catalog.menus:
        return PublishedMenu.from_menu(catalog.menus[0])
    return None
