"""Order note text, written in the compact item grammar read by ``parsing``."""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import Menu
from .parsing import OrderItem


def format_price(value: Decimal) -> str:
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return str(value.normalize())


_MARKER = re.compile(r"#(?=\S)")


def _one_line(text: str) -> str:
    """Single-line free text with record markers and code fences disarmed."""
    flat = " ".join(text.split()).replace("```", "'''")
    # "#word" reads as a record marker here and as a tag on the server
    return _MARKER.sub("＃", flat)


def _clean_name(name: str) -> str:
    # "×" separates fields in the compact grammar
    cleaned = _one_line(name.replace("×", "x")) or "item"
    if cleaned.startswith('name:"'):
        # would read back as a legacy line
        cleaned = cleaned.replace('"', "'")
    return cleaned


def order_lines(menu: Menu, quantities: Mapping[str, int]) -> List[OrderItem]:
    """Lines for every menu item with a positive quantity, in menu order."""
    lines: List[OrderItem] = []
    for it in menu.items:
        qty = int(quantities.get(it.id, 0) or 0)
        if qty <= 0:
            continue
        lines.append(
            OrderItem(name=it.name or it.id, quantity=qty, unit_price=it.price)
        )
    return lines


def requested_lines(
    menu: Menu, requested: Iterable[Tuple[str, str, int]]
) -> List[OrderItem]:
    """
    Lines for an order placed by an anonymous client as
    ``(item_id, name, quantity)`` triples. Known items take their name and
    price from the menu; unknown items keep the client's name and carry no
    price.
    """
    lines: List[OrderItem] = []
    for item_id, name, qty in requested:
        if qty <= 0:
            continue
        known = menu.item(item_id) if item_id else None
        if known is not None:
            lines.append(
                OrderItem(
                    name=known.name or known.id, quantity=qty, unit_price=known.price
                )
            )
        elif name and name.strip():
            lines.append(OrderItem(name=name.strip(), quantity=qty))
    return lines


def build_order_content(
    menu_id: str,
    menu_name: str,
    lines: Sequence[OrderItem],
    *,
    remark: str = "",
    customer_name: Optional[str] = None,
    placed_at: Optional[datetime] = None,
) -> str:
    out: List[str] = [f"#order #menu:{menu_id}", ""]
    out.append(f"📋 **Menu**: {_one_line(menu_name)}")
    if customer_name:
        out.append(f"🙋 **Customer**: {_one_line(customer_name)}")
    if placed_at is not None:
        out.append(f"🕒 **Time**: {placed_at.strftime('%Y-%m-%d %H:%M:%S')}")
    out.append("")
    out.append("🍽️ **Items**:")

    total_qty = 0
    total_amount = Decimal(0)
    priced = False
    for line in lines:
        if line.quantity <= 0:
            continue
        total_qty += line.quantity
        row = f"- {_clean_name(line.name)} × {line.quantity}"
        if line.unit_price is not None:
            amount = line.unit_price * line.quantity
            total_amount += amount
            priced = True
            row += f" × ¥{format_price(line.unit_price)} = ¥{amount:.2f}"
        out.append(row)

    if total_qty > 0:
        out.append("")
        summary = f"📊 **Total**: {total_qty} items"
        if priced:
            summary += f", ¥{total_amount:.2f}"
        out.append(summary)

    if remark.strip():
        out.append("")
        out.append(f"💬 **Note**: {_one_line(remark)}")

    return "\n".join(out)
