"""
Public menu router.
Lets anonymous clients read a published menu and order against it.
No authentication required; only PUBLIC ``menu-pub`` notes are served.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from menunotes.base import PublicMenuDesk
from menunotes.services.menu.errors import EmptyOrderError, OrderSubmissionError
from menunotes.services.notes.domain import is_note_id, note_id_from_name, note_name
from menunotes.services.notes.models.wire import (
    WirePublicOrderRequest,
    WirePublicOrderResponse,
)
from menunotes.services.notes.service import wire_from_note

from ..deps import get_desk

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/public", tags=["public"])


def _note_hint(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    note_id = note_id_from_name(value)
    if not is_note_id(note_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid note")
    return note_id


@router.get("/menu")
def get_public_menu(
    public_id: Optional[str] = Query(None, alias="publicId"),
    note: Optional[str] = Query(None),
    memo: Optional[str] = Query(None),
    desk: PublicMenuDesk = Depends(get_desk),
):
    """
    Note publishing the menu for ``publicId``. The ``note`` hint (``memo``
    in older links) is tried first, then a bounded scan of public notes.
    """
    if not public_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="missing publicId")
    found = desk.find(public_id, _note_hint(note or memo))
    if found is None or found.note is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="menu not found")
    return wire_from_note(found.note).model_dump(mode="json", exclude_none=True)


@router.post("/menu-order", response_model=WirePublicOrderResponse)
def create_public_order(
    body: WirePublicOrderRequest,
    desk: PublicMenuDesk = Depends(get_desk),
) -> WirePublicOrderResponse:
    """Create a PUBLIC order note against a published menu."""
    if not body.publicId or not body.customerName.strip() or not body.items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="missing fields")
    note_id = _note_hint(body.note)
    try:
        placed = desk.place_order(
            body.publicId,
            [(it.itemId, it.name, it.quantity) for it in body.items],
            customer_name=body.customerName,
            note_id=note_id,
            remark=body.noteText,
        )
    except EmptyOrderError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except OrderSubmissionError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    if placed is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="menu not public or not found"
        )
    note, total_quantity = placed
    return WirePublicOrderResponse(name=note_name(note.id), totalQuantity=total_quantity)
