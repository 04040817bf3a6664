"""In-memory stand-in for NotesService used by the component tests."""

import dataclasses
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from menunotes.services.notes import (
    Attachment,
    Note,
    NotePage,
    NoteNotFound,
    NotesApiError,
    Visibility,
)

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeNotesService:
    """
    Keeps notes in memory and pages them newest first.

    ``failures`` maps a method name to the exception it should raise;
    ``failing_deletes`` lists note ids whose deletion fails.
    """

    def __init__(self, page_size: int = 50):
        self.page_size = page_size
        self.notes: Dict[str, Note] = {}
        self.blobs: Dict[str, bytes] = {}
        self.failures: Dict[str, Exception] = {}
        self.failing_deletes = set()
        self.public_endpoint: Dict[str, Note] = {}
        self.calls: List[tuple] = []
        self._seq = 0

    # ----------------------------- seeding --------------------------------

    def add(
        self,
        content: str,
        *,
        visibility: Visibility = Visibility.PRIVATE,
        tags: Iterable[str] = (),
        create_time: Optional[datetime] = None,
        attachments=(),
        note_id: Optional[str] = None,
    ) -> Note:
        self._seq += 1
        note = Note(
            id=note_id or f"n{self._seq}",
            content=content,
            tags=frozenset(tags),
            visibility=visibility,
            create_time=create_time or BASE_TIME + timedelta(minutes=self._seq),
            attachments=tuple(attachments),
        )
        self.notes[note.id] = note
        return note

    def _maybe_fail(self, name: str) -> None:
        self.calls.append((name,))
        exc = self.failures.get(name)
        if exc is not None:
            raise exc

    # ------------------------------- API ----------------------------------

    def list_page(self, page_token=None, *, page_size=None, visibility=None):
        self._maybe_fail("list_page")
        size = page_size or self.page_size
        notes = sorted(
            self.notes.values(), key=lambda n: n.create_time, reverse=True
        )
        if visibility is not None:
            notes = [n for n in notes if n.visibility == visibility]
        start = int(page_token or 0)
        chunk = notes[start : start + size]
        nxt = str(start + size) if start + size < len(notes) else None
        return NotePage(notes=chunk, next_page_token=nxt)

    def iter_pages(self, *, max_pages=None, visibility=None):
        token = None
        fetched = 0
        while max_pages is None or fetched < max_pages:
            page = self.list_page(token, visibility=visibility)
            fetched += 1
            yield page
            if not page.next_page_token:
                return
            token = page.next_page_token

    def get(self, note_id: str) -> Note:
        self._maybe_fail("get")
        try:
            return self.notes[note_id]
        except KeyError:
            raise NoteNotFound(f"Note not found: {note_id}")

    def create(self, content: str, visibility: Visibility) -> Note:
        self._maybe_fail("create")
        return self.add(content, visibility=visibility)

    def update_content(self, note_id: str, content: str) -> Note:
        self._maybe_fail("update_content")
        note = dataclasses.replace(self.get(note_id), content=content)
        self.notes[note_id] = note
        return note

    def delete(self, note_id: str) -> None:
        self._maybe_fail("delete")
        if note_id in self.failing_deletes:
            raise NotesApiError("HTTP 500", status_code=500)
        if self.notes.pop(note_id, None) is None:
            raise NoteNotFound(f"Note not found: {note_id}")

    def create_attachment(self, note_id, filename, mime_type, data) -> Attachment:
        self._maybe_fail("create_attachment")
        att = Attachment(
            id=f"attachments/a{len(self.blobs) + 1}",
            filename=filename,
            mime_type=mime_type,
            url=f"https://notes.test/file/a{len(self.blobs) + 1}/{filename}",
        )
        self.blobs[att.id] = data
        note = self.get(note_id)
        self.notes[note_id] = dataclasses.replace(
            note, attachments=note.attachments + (att,)
        )
        return att

    def fetch_attachment(self, att: Attachment) -> bytes:
        self._maybe_fail("fetch_attachment")
        if att.content is not None:
            return att.content
        try:
            return self.blobs[att.id]
        except KeyError:
            raise NotesApiError("HTTP 404 on attachment GET", status_code=404)

    def public_menu_note(self, public_id, note_id=None) -> Optional[Note]:
        self._maybe_fail("public_menu_note")
        return self.public_endpoint.get(public_id)
