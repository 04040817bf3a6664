"""
Order ledger: derived, disposable view of every order note.

The ledger never patches itself in place. Pages fetched from the note
service accumulate in a snapshot keyed by note id, and every change (new
page, refresh, deletion) re-derives the order list from that snapshot with
``rebuild``. Projections below are pure functions over ``ParsedOrder`` lists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple

from ..notes.client import NotesError
from ..notes.models import Note
from . import parsing
from .parsing import OrderItem

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from ..notes.service import NotesService

LOGGER = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class ParsedOrder:
    source_note: Note
    menu_id: Optional[str]
    items: Tuple[OrderItem, ...]
    total_quantity: int
    total_amount: Optional[Decimal]

    @property
    def create_time(self) -> Optional[datetime]:
        return self.source_note.create_time

    @classmethod
    def from_note(cls, note: Note) -> "ParsedOrder":
        content = parsing.parse_order(note.content)
        items = tuple(content.items)
        priced = [it.amount for it in items if it.amount is not None]
        return cls(
            source_note=note,
            menu_id=content.menu_id,
            items=items,
            total_quantity=sum(it.quantity for it in items),
            total_amount=sum(priced, Decimal(0)) if priced else None,
        )


def _sort_key(order: ParsedOrder) -> datetime:
    ts = order.create_time
    if ts is None:
        return _EPOCH
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def rebuild(notes: Iterable[Note]) -> List[ParsedOrder]:
    """
    Orders among ``notes``, newest first. Equal timestamps keep input order.
    """
    orders = [
        ParsedOrder.from_note(n)
        for n in notes
        if parsing.classify(n) is parsing.RecordKind.ORDER
    ]
    # sorted() is stable with reverse=True
    return sorted(orders, key=_sort_key, reverse=True)


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ItemAggregate:
    name: str
    quantity: int
    revenue: Optional[Decimal]


def filter_by_menu(
    orders: Sequence[ParsedOrder], menu_id: Optional[str]
) -> List[ParsedOrder]:
    if not menu_id:
        return list(orders)
    return [o for o in orders if o.menu_id == menu_id]


def filter_by_date(
    orders: Sequence[ParsedOrder],
    start: Optional[date] = None,
    end: Optional[date] = None,
    *,
    tz: Optional[tzinfo] = None,
) -> List[ParsedOrder]:
    """
    Orders created within the inclusive day range ``start``..``end`` in
    ``tz`` (UTC when omitted). Orders without a timestamp never match a
    bounded range.
    """
    if start is None and end is None:
        return list(orders)
    zone = tz or timezone.utc
    out: List[ParsedOrder] = []
    for o in orders:
        ts = o.create_time
        if ts is None:
            continue
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        day = ts.astimezone(zone).date()
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        out.append(o)
    return out


def preset_range(days: int, *, today: Optional[date] = None) -> Tuple[date, date]:
    """(start, end) covering the last ``days`` days, today included."""
    end = today or date.today()
    return end - timedelta(days=max(days, 1) - 1), end


def orders_today(
    orders: Sequence[ParsedOrder],
    *,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> List[ParsedOrder]:
    start, end = preset_range(1, today=today)
    return filter_by_date(orders, start, end, tz=tz)


def menu_ids(orders: Iterable[ParsedOrder]) -> List[str]:
    return sorted({o.menu_id for o in orders if o.menu_id})


def aggregate_by_item(orders: Iterable[ParsedOrder]) -> List[ItemAggregate]:
    """Quantity and revenue per item name, in first-seen order."""
    qty: Dict[str, int] = {}
    revenue: Dict[str, Optional[Decimal]] = {}
    for o in orders:
        for it in o.items:
            qty[it.name] = qty.get(it.name, 0) + it.quantity
            prev = revenue.get(it.name)
            if it.amount is not None:
                revenue[it.name] = (prev or Decimal(0)) + it.amount
            else:
                revenue.setdefault(it.name, prev)
    return [ItemAggregate(name, qty[name], revenue.get(name)) for name in qty]


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


@dataclass
class BatchResult:
    succeeded: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)
    # set when the ledger could not be reloaded after the batch
    reload_error: Optional[str] = None

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)


class OrderLedger:
    """
    Aggregate view over the order notes loaded so far.

    Loading is caller-driven: ``refresh`` starts over from the first page,
    ``fetch_next_page`` appends the next one ("load more").
    """

    def __init__(self, notes: "NotesService"):
        self._notes = notes
        self._snapshot: Dict[str, Note] = {}
        self._next_token: Optional[str] = None
        self._pages_loaded = 0
        self._exhausted = False
        self._orders: List[ParsedOrder] = []

    @property
    def orders(self) -> List[ParsedOrder]:
        return list(self._orders)

    @property
    def has_more(self) -> bool:
        return not self._exhausted

    @property
    def pages_loaded(self) -> int:
        return self._pages_loaded

    def refresh(self, *, pages: int = 1) -> List[ParsedOrder]:
        """Drop the snapshot and load ``pages`` pages from the start."""
        self._snapshot = {}
        self._next_token = None
        self._pages_loaded = 0
        self._exhausted = False
        self._orders = []
        for _ in range(max(pages, 1)):
            if self._exhausted:
                break
            self.fetch_next_page()
        return self.orders

    def fetch_next_page(self) -> List[ParsedOrder]:
        if self._exhausted:
            return self.orders
        page = self._notes.list_page(self._next_token)
        for note in page.notes:
            # Re-fetched notes replace their earlier copy; no double counting.
            self._snapshot[note.id] = note
        self._pages_loaded += 1
        self._next_token = page.next_page_token
        self._exhausted = not page.next_page_token
        self._orders = rebuild(self._snapshot.values())
        LOGGER.debug(
            "menu.ledger.page n=%d notes=%d orders=%d more=%s",
            self._pages_loaded,
            len(self._snapshot),
            len(self._orders),
            not self._exhausted,
        )
        return self.orders

    def delete_orders(self, orders: Iterable[ParsedOrder]) -> BatchResult:
        """
        Delete the notes behind ``orders`` one at a time. A failed deletion is
        recorded and the batch continues. The ledger is then reloaded from the
        service with as many pages as were loaded before; if that fails the
        ledger is left empty and ``reload_error`` is set on the result.
        """
        result = BatchResult()
        for order in orders:
            note_id = order.source_note.id
            try:
                self._notes.delete(note_id)
            except NotesError as exc:
                LOGGER.warning("menu.ledger.delete_failed id=%s err=%s", note_id, exc)
                result.failed.append((note_id, str(exc)))
                continue
            result.succeeded.append(note_id)
        LOGGER.info(
            "menu.ledger.deleted ok=%d failed=%d",
            result.success_count,
            result.failure_count,
        )
        try:
            self.refresh(pages=self._pages_loaded or 1)
        except NotesError as exc:
            LOGGER.error("menu.ledger.reload_failed err=%s", exc)
            result.reload_error = str(exc)
        return result
