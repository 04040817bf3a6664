"""Find catalog definitions published as notes, for import into the local catalog."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Tuple

from ..notes.client import NotesError
from ..notes.models import Note
from . import parsing
from .codec import CatalogCodec
from .models import Catalog
from .parsing import RecordKind

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from ..notes.service import NotesService

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 5
PREVIEW_SIZE = 3


@dataclass(frozen=True)
class ImportCandidate:
    note: Note
    catalog: Catalog

    @property
    def preview(self) -> Tuple[str, ...]:
        """Names of the first few menus, for picking a candidate."""
        return tuple(m.name or m.id for m in self.catalog.menus[:PREVIEW_SIZE])

    @property
    def menu_count(self) -> int:
        return len(self.catalog.menus)


def scan_catalog_definitions(
    notes: "NotesService",
    codec: CatalogCodec,
    *,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> List[ImportCandidate]:
    """
    Page through the note stream (at most ``max_pages`` fetches) and decode
    every ``menu-def`` note. Notes that fail to decode are skipped. A page
    fetch failure after the first page ends the scan with what was found so
    far; a failure on the first page propagates.
    """
    found: List[ImportCandidate] = []
    pages = 0
    try:
        for page in notes.iter_pages(max_pages=max_pages):
            pages += 1
            for note in page.notes:
                if parsing.classify(note) is not RecordKind.MENU_DEF:
                    continue
                catalog = codec.decode_catalog(note)
                if catalog is None or not catalog.menus:
                    LOGGER.debug("menu.import.skip id=%s", note.id)
                    continue
                found.append(ImportCandidate(note=note, catalog=catalog))
    except NotesError as exc:
        if not pages:
            raise
        LOGGER.warning("menu.import.scan_failed pages=%d err=%s", pages, exc)
    LOGGER.info("menu.import.scanned pages=%d candidates=%d", pages, len(found))
    return found
