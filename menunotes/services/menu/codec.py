"""
Publish catalogs and menus as notes, and read them back.

Two layouts, chosen by the size of the inline note text:

  inline      the JSON payload sits in a fenced ```json block after the
              discriminator tag (``#menu-def`` / ``#menu-pub``)
  attachment  a placeholder note carries the tag and a short notice; the
              payload is an ``application/json`` attachment of that note

The size limit comes from the caller (the note service's content limit).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional, Union

from ..notes.client import NotesError
from ..notes.domain import Visibility
from ..notes.models import Attachment, Note
from . import parsing
from .errors import PublishError
from .models import Catalog, Menu, PublishedMenu, dump_json
from .parsing import MENU_DEF_TAG, MENU_PUB_TAG, RecordKind

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from ..notes.service import NotesService

LOGGER = logging.getLogger(__name__)

JSON_MIME_TYPE = "application/json"
DEFAULT_SIZE_LIMIT = 8192

INLINE = "inline"
ATTACHMENT = "attachment"


@dataclass(frozen=True)
class PublicationRecord:
    """Where a catalog or menu was published, and how to find it again."""

    note: Note
    strategy: str
    attachment: Optional[Attachment] = None
    public_id: Optional[str] = None
    menu: Optional[Menu] = None

    @property
    def note_id(self) -> str:
        return self.note.id


def render_inline(tag: str, payload_json: str) -> str:
    return f"#{tag}\n\n```json\n{payload_json}\n```"


def _attachment_filename(prefix: str) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d-%H-%M-%S")
    return f"{prefix}-{stamp}.json"


class CatalogCodec:
    def __init__(self, notes: "NotesService", *, size_limit: int = DEFAULT_SIZE_LIMIT):
        self._notes = notes
        self.size_limit = size_limit

    # ------------------------------ encode ---------------------------------

    def encode_catalog(
        self, catalog: Catalog, *, visibility: Visibility = Visibility.PROTECTED
    ) -> PublicationRecord:
        """Publish the whole catalog as a ``menu-def`` note."""
        catalog = catalog.ensure_public_ids()
        return self._publish(
            tag=MENU_DEF_TAG,
            pretty=dump_json(catalog, indent=2),
            compact=dump_json(catalog),
            notice="(Menu definition is large; published as a JSON attachment.)",
            filename_prefix="menu-def",
            visibility=visibility,
        )

    def encode_menu(
        self, menu: Menu, *, visibility: Visibility = Visibility.PUBLIC
    ) -> PublicationRecord:
        """
        Publish one menu as a ``menu-pub`` note. The menu's ``public_id`` is
        reused, or assigned when missing; the record carries the menu as
        published so the caller can persist the id.
        """
        menu = menu.with_public_id()
        published = PublishedMenu.from_menu(menu)
        record = self._publish(
            tag=MENU_PUB_TAG,
            pretty=dump_json(published, indent=2),
            compact=dump_json(published),
            notice=(
                f"publicId:{menu.public_id}\n\n"
                "(Menu is large; published as a JSON attachment.)"
            ),
            filename_prefix="menu-public",
            visibility=visibility,
        )
        return PublicationRecord(
            note=record.note,
            strategy=record.strategy,
            attachment=record.attachment,
            public_id=menu.public_id,
            menu=menu,
        )

    def _publish(
        self,
        *,
        tag: str,
        pretty: str,
        compact: str,
        notice: str,
        filename_prefix: str,
        visibility: Visibility,
    ) -> PublicationRecord:
        content = render_inline(tag, pretty)
        if len(content) <= self.size_limit:
            try:
                note = self._notes.create(content, visibility)
            except NotesError as exc:
                raise PublishError(f"Failed to publish #{tag} note: {exc}") from exc
            LOGGER.info("menu.codec.inline id=%s len=%d", note.id, len(content))
            return PublicationRecord(note=note, strategy=INLINE)

        LOGGER.info(
            "menu.codec.attachment len=%d limit=%d", len(content), self.size_limit
        )
        try:
            placeholder = self._notes.create(f"#{tag}\n{notice}", visibility)
        except NotesError as exc:
            raise PublishError(f"Failed to publish #{tag} note: {exc}") from exc
        try:
            att = self._notes.create_attachment(
                placeholder.id,
                _attachment_filename(filename_prefix),
                JSON_MIME_TYPE,
                compact.encode("utf-8"),
            )
        except NotesError as exc:
            self._discard(placeholder)
            raise PublishError(
                f"Failed to attach #{tag} payload to {placeholder.id}: {exc}"
            ) from exc

        note = placeholder
        try:
            note = self._notes.update_content(
                placeholder.id, f"{placeholder.content}\n\n![[{att.id}]]"
            )
        except NotesError as exc:
            # The attachment is already linked; the reference is cosmetic.
            LOGGER.warning(
                "menu.codec.reference_failed id=%s err=%s", placeholder.id, exc
            )
        if not note.attachments:
            note = Note(
                id=note.id,
                content=note.content,
                tags=note.tags,
                visibility=note.visibility,
                create_time=note.create_time,
                attachments=(att,),
            )
        return PublicationRecord(note=note, strategy=ATTACHMENT, attachment=att)

    def _discard(self, note: Note) -> None:
        try:
            self._notes.delete(note.id)
        except NotesError as exc:
            LOGGER.warning("menu.codec.discard_failed id=%s err=%s", note.id, exc)

    def withdraw_menu(self, public_id: str, *, max_pages: int = 5) -> List[str]:
        """
        Delete every PUBLIC ``menu-pub`` note published for ``public_id``
        within the first ``max_pages`` pages. Returns the deleted note ids.

        Raises:
            PublishError: the scan failed or a note could not be deleted.
        """
        found: List[str] = []
        try:
            for page in self._notes.iter_pages(
                max_pages=max_pages, visibility=Visibility.PUBLIC
            ):
                for note in page.notes:
                    if parsing.classify(note) is not RecordKind.MENU_PUB:
                        continue
                    hint = parsing.public_id_hint(note.content)
                    if hint and hint != public_id:
                        continue
                    published = self.decode_menu(note)
                    if published is not None and published.public_id == public_id:
                        found.append(note.id)
        except NotesError as exc:
            raise PublishError(f"Failed to look up published menu: {exc}") from exc

        deleted: List[str] = []
        failed: List[str] = []
        for note_id in found:
            try:
                self._notes.delete(note_id)
            except NotesError as exc:
                LOGGER.warning("menu.codec.withdraw_failed id=%s err=%s", note_id, exc)
                failed.append(note_id)
                continue
            deleted.append(note_id)
        LOGGER.info(
            "menu.codec.withdrawn public_id=%s ok=%d failed=%d",
            public_id,
            len(deleted),
            len(failed),
        )
        if failed:
            raise PublishError(
                f"Menu is still published in note(s): {', '.join(failed)}"
            )
        return deleted

    # ------------------------------ decode ---------------------------------

    def decode(self, note: Note) -> Union[Catalog, PublishedMenu, None]:
        kind = parsing.classify(note)
        if kind is RecordKind.MENU_PUB:
            return self.decode_menu(note)
        if kind is RecordKind.MENU_DEF:
            return self.decode_catalog(note)
        return None

    def decode_catalog(self, note: Note) -> Optional[Catalog]:
        catalog = parsing.parse_menu_def(note.content)
        if catalog is not None:
            return catalog
        for att in self._json_attachments(note):
            catalog = parsing.parse_menu_def(self._load(att))
            if catalog is not None:
                LOGGER.debug("menu.codec.catalog_from_attachment id=%s", note.id)
                return catalog
        return None

    def decode_menu(self, note: Note) -> Optional[PublishedMenu]:
        menu = parsing.parse_menu_pub(note.content)
        if menu is not None:
            return menu
        for att in self._json_attachments(note):
            menu = parsing.parse_menu_pub(self._load(att))
            if menu is not None:
                LOGGER.debug("menu.codec.menu_from_attachment id=%s", note.id)
                return menu
        return None

    @staticmethod
    def _json_attachments(note: Note):
        return [a for a in note.attachments if a.is_json]

    def _load(self, att: Attachment) -> Optional[bytes]:
        try:
            return self._notes.fetch_attachment(att)
        except NotesError as exc:
            LOGGER.warning("menu.codec.attachment_failed id=%s err=%s", att.id, exc)
            return None
