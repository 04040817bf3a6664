"""
Wire models for the memos-compatible note API.

Field names follow the JSON payloads verbatim (camelCase), so requests can be
built with ``model_dump(exclude_none=True)`` and responses parsed with
``model_validate``.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from ..domain import Visibility
from ._base import WireModel


class WireAttachment(WireModel):
    name: str = ""
    filename: str = ""
    type: str = ""
    externalLink: str = ""
    # Base64 payload; only present when the server inlines attachment bytes.
    content: Optional[str] = None
    size: Optional[int] = None
    memo: Optional[str] = None

    @field_validator("size", mode="before")
    @classmethod
    def _size_from_string(cls, v):
        # int64 fields are serialized as strings by the gateway
        if isinstance(v, str):
            return int(v) if v.isdigit() else None
        return v


class WireNote(WireModel):
    name: str
    content: str = ""
    tags: List[str] = Field(default_factory=list)
    visibility: Visibility = Visibility.PRIVATE
    createTime: Optional[datetime] = None
    updateTime: Optional[datetime] = None
    attachments: List[WireAttachment] = Field(default_factory=list)

    @field_validator("visibility", mode="before")
    @classmethod
    def _visibility_or_private(cls, v):
        if isinstance(v, str) and v.upper() in Visibility.__members__:
            return v.upper()
        return Visibility.PRIVATE


class WireListNotesResponse(WireModel):
    memos: List[WireNote] = Field(default_factory=list)
    nextPageToken: str = ""


class WireCreateNoteRequest(WireModel):
    content: str
    visibility: Visibility


class WireUpdateNoteRequest(WireModel):
    content: str


class WireCreateAttachmentRequest(WireModel):
    filename: str
    type: str
    content: str  # base64
    memo: str


class WirePublicOrderItem(WireModel):
    itemId: str = ""
    name: str = ""
    quantity: int = 0


class WirePublicOrderRequest(WireModel):
    # Note publishing the menu; "memo" is the older spelling.
    note: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("note", "memo")
    )
    publicId: str = ""
    customerName: str = ""
    noteText: str = Field(
        default="", validation_alias=AliasChoices("noteText", "note-text")
    )
    items: List[WirePublicOrderItem] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _legacy_body(cls, obj):
        """
        Older clients send ``memo`` for the menu note and ``note`` for the
        remark. A body carrying ``memo`` is read that way.
        """
        if not isinstance(obj, dict) or "memo" not in obj:
            return obj
        obj = dict(obj)
        remark = obj.pop("note", None)
        if remark is not None and "noteText" not in obj and "note-text" not in obj:
            obj["noteText"] = remark
        return obj


class WirePublicOrderResponse(WireModel):
    name: str
    totalQuantity: Optional[int] = None
