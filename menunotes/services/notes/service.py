"""
High-level notes service (DX-first).

Public API:
  - NotesService.list_page(page_token=None, page_size=None, visibility=None) -> NotePage
  - NotesService.iter_pages(max_pages=None, visibility=None) -> Iterable[NotePage]
  - NotesService.get(note_id) -> Note
  - NotesService.create(content, visibility) -> Note
  - NotesService.update_content(note_id, content) -> Note
  - NotesService.delete(note_id) -> None
  - NotesService.create_attachment(note_id, filename, mime_type, data) -> Attachment
  - NotesService.attachment_url(attachment) -> str
  - NotesService.fetch_attachment(attachment) -> bytes
  - NotesService.public_menu_note(public_id, note_id=None) -> Optional[Note]
  - NotesService.place_public_order(public_id, items, ...) -> str
  - NotesService.raw -> MemosNotesClient (escape hatch)

This module exposes developer-friendly dataclasses and hides wire details.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Dict, Iterable, Iterator, Optional, Sequence, Tuple

import requests

from .client import MemosNotesClient, NotesApiError, NotesError
from .domain import Visibility, note_id_from_name, note_name
from .models import Attachment, Note, NotePage
from .models.wire import (
    WireAttachment,
    WireCreateAttachmentRequest,
    WireNote,
    WirePublicOrderItem,
    WirePublicOrderRequest,
)

LOGGER = logging.getLogger(__name__)


# ----------------------------- Service Errors --------------------------------


class NoteNotFound(NotesError):
    pass


# ----------------------------- NotesService ----------------------------------


class NotesService:
    """
    Developer-first note API. Uses the preconfigured raw client under the hood.
    """

    def __init__(
        self,
        base_url: str,
        session: requests.Session,
        *,
        public_base_url: Optional[str] = None,
        page_size: int = 50,
        timeout: Optional[float] = None,
        params: Optional[Dict[str, object]] = None,
    ):
        self._raw = MemosNotesClient(
            base_url,
            session,
            public_base_url=public_base_url,
            base_params=params,
            timeout=timeout,
        )
        self._page_size = page_size
        # Attachment bytes keyed by attachment id; attachments are immutable.
        self._attachment_cache: Dict[str, bytes] = {}

    # -------------------------- Public API methods ---------------------------

    def list_page(
        self,
        page_token: Optional[str] = None,
        *,
        page_size: Optional[int] = None,
        visibility: Optional[Visibility] = None,
    ) -> NotePage:
        """
        Fetch one page of notes, newest first. ``next_page_token`` is None on
        the last page.
        """
        filter_expr = None
        if visibility is not None:
            filter_expr = f'visibility == "{visibility.value}"'
        LOGGER.debug(
            "Fetching notes page: token=%s visibility=%s", page_token, visibility
        )
        resp = self._raw.list_notes(
            page_token=page_token,
            page_size=page_size or self._page_size,
            filter_expr=filter_expr,
        )
        notes = [self._note_from_wire(w) for w in resp.memos]
        if visibility is not None:
            # Older servers ignore the filter expression.
            notes = [n for n in notes if n.visibility == visibility]
        return NotePage(notes=notes, next_page_token=resp.nextPageToken or None)

    def iter_pages(
        self,
        *,
        max_pages: Optional[int] = None,
        visibility: Optional[Visibility] = None,
    ) -> Iterable[NotePage]:
        """
        Walk the note stream page by page. Stops after ``max_pages`` fetches if
        provided, so callers can bound latency against a large corpus.
        """
        token: Optional[str] = None
        fetched = 0
        while max_pages is None or fetched < max_pages:
            page = self.list_page(token, visibility=visibility)
            fetched += 1
            yield page
            if not page.next_page_token:
                LOGGER.debug("Pages: no more page token, done after %d.", fetched)
                return
            token = page.next_page_token
        LOGGER.debug("Pages: page cap %s reached.", max_pages)

    def get(self, note_id: str) -> Note:
        """
        Fetch a single note.
        Raises NoteNotFound if the note doesn't exist.
        """
        LOGGER.debug("Fetching note: note_id=%s", note_id)
        try:
            wire = self._raw.get_note(note_id)
        except NotesApiError as err:
            if err.status_code == 404:
                LOGGER.warning("Note not found: %s", note_id)
                raise NoteNotFound(f"Note not found: {note_id}") from err
            raise
        return self._note_from_wire(wire)

    def create(self, content: str, visibility: Visibility) -> Note:
        LOGGER.debug(
            "Creating note: visibility=%s len=%d", visibility.value, len(content)
        )
        return self._note_from_wire(self._raw.create_note(content, visibility))

    def update_content(self, note_id: str, content: str) -> Note:
        return self._note_from_wire(self._raw.update_note_content(note_id, content))

    def delete(self, note_id: str) -> None:
        LOGGER.debug("Deleting note: note_id=%s", note_id)
        try:
            self._raw.delete_note(note_id)
        except NotesApiError as err:
            if err.status_code == 404:
                raise NoteNotFound(f"Note not found: {note_id}") from err
            raise

    def create_attachment(
        self, note_id: str, filename: str, mime_type: str, data: bytes
    ) -> Attachment:
        """Upload ``data`` as an attachment linked to ``note_id``."""
        req = WireCreateAttachmentRequest(
            filename=filename,
            type=mime_type,
            content=base64.b64encode(data).decode("ascii"),
            memo=note_name(note_id),
        )
        wire = self._raw.create_attachment(req)
        att = self._attachment_from_wire(wire)
        self._attachment_cache[att.id] = data
        LOGGER.info(
            "notes.attachment.created id=%s note=%s bytes=%d",
            att.id,
            note_id,
            len(data),
        )
        return att

    def attachment_url(self, att: Attachment) -> str:
        if att.url:
            return att.url
        raise NotesApiError("Attachment does not expose a download URL.")

    def fetch_attachment(self, att: Attachment) -> bytes:
        """Return the attachment bytes, downloading them when not inline."""
        if att.content is not None:
            return att.content
        cached = self._attachment_cache.get(att.id)
        if cached is not None:
            return cached
        data = b"".join(self._stream_attachment(att))
        self._attachment_cache[att.id] = data
        return data

    def public_menu_note(
        self, public_id: str, note_id: Optional[str] = None
    ) -> Optional[Note]:
        """
        Ask the public lookup endpoint for the note publishing ``public_id``.
        Returns None when the endpoint reports 404.
        """
        try:
            wire = self._raw.public_menu(public_id, note_id)
        except NotesApiError as err:
            if err.status_code == 404:
                LOGGER.debug("Public menu not found: public_id=%s", public_id)
                return None
            raise
        return self._note_from_wire(wire)

    def place_public_order(
        self,
        public_id: str,
        items: Sequence[Tuple[str, str, int]],
        *,
        customer_name: str,
        note_id: Optional[str] = None,
        remark: str = "",
    ) -> str:
        """
        Order anonymously against a published menu. ``items`` holds
        ``(item_id, name, quantity)`` triples. Returns the order note id.
        """
        req = WirePublicOrderRequest(
            note=note_name(note_id) if note_id else None,
            publicId=public_id,
            customerName=customer_name,
            noteText=remark,
            items=[
                WirePublicOrderItem(itemId=item_id, name=name, quantity=qty)
                for item_id, name, qty in items
            ],
        )
        resp = self._raw.public_menu_order(req)
        LOGGER.info("notes.public_order.created name=%s", resp.name)
        return note_id_from_name(resp.name)

    @property
    def raw(self) -> MemosNotesClient:
        """
        Escape hatch: preconfigured, authenticated raw client.
        """
        return self._raw

    # -------------------------- Internal helpers -----------------------------

    def _note_from_wire(self, wire: WireNote) -> Note:
        return Note(
            id=note_id_from_name(wire.name),
            content=wire.content,
            tags=frozenset(wire.tags),
            visibility=wire.visibility,
            create_time=wire.createTime,
            attachments=tuple(self._attachment_from_wire(a) for a in wire.attachments),
        )

    def _attachment_from_wire(self, wire: WireAttachment) -> Attachment:
        content: Optional[bytes] = None
        if wire.content:
            try:
                content = base64.b64decode(wire.content, validate=True)
            except (binascii.Error, ValueError):
                LOGGER.debug("notes.attachment.content_not_b64 id=%s", wire.name)
                content = None
        url = self._raw.attachment_url(wire) if (wire.name or wire.externalLink) else None
        return Attachment(
            id=wire.name,
            filename=wire.filename,
            mime_type=wire.type,
            url=url,
            content=content,
        )

    def _stream_attachment(
        self, att: Attachment, *, chunk_size: int = 65536
    ) -> Iterator[bytes]:
        url = self.attachment_url(att)
        LOGGER.debug("Streaming attachment %s chunk_size=%d", att.id, chunk_size)
        yield from self._raw.download_stream(url, chunk_size=chunk_size)


def wire_from_note(note: Note) -> WireNote:
    """Wire payload for ``note``, as served by the public menu endpoint."""
    return WireNote(
        name=note_name(note.id),
        content=note.content,
        tags=sorted(note.tags),
        visibility=note.visibility,
        createTime=note.create_time,
        attachments=[
            WireAttachment(
                name=att.id,
                filename=att.filename,
                type=att.mime_type,
                externalLink=att.url or "",
                content=(
                    base64.b64encode(att.content).decode("ascii")
                    if att.content is not None
                    else None
                ),
            )
            for att in note.attachments
        ],
    )
