"""
Resolve a public menu id to a published menu.

The resolver walks an ordered list of tiers and stops at the first one that
yields a matching menu. A tier that errors or finds nothing hands over to
the next; only exhausting every tier yields ``None``.

Default order:
  1. PublicEndpointTier  public lookup endpoint (``GET /public/menu``)
  2. DirectNoteTier      the note id carried in a shared link
  3. PublicScanTier      bounded scan over PUBLIC ``menu-pub`` notes
  4. LocalCatalogTier    the locally persisted catalog (no network)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

from ..notes.client import NotesError
from ..notes.domain import Visibility, is_note_id
from ..notes.models import Note
from . import parsing
from .codec import CatalogCodec
from .errors import MenuError
from .models import Menu
from .parsing import RecordKind
from .store import CatalogStore

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from ..notes.service import NotesService

LOGGER = logging.getLogger(__name__)

DEFAULT_SCAN_PAGES = 5


@dataclass(frozen=True)
class ResolvedMenu:
    menu: Menu
    tier: str
    note: Optional[Note] = None


def matches(menu: Optional[Menu], public_id: str) -> bool:
    return bool(
        menu is not None and menu.public_id == public_id and menu.allow_public_order
    )


class ResolutionTier:
    """One lookup strategy. ``lookup`` returns None when it finds nothing."""

    name = "tier"

    def lookup(self, public_id: str, note_id: Optional[str]) -> Optional[ResolvedMenu]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class _NoteTier(ResolutionTier):
    def __init__(self, notes: "NotesService", codec: CatalogCodec):
        self._notes = notes
        self._codec = codec

    def _decode(self, note: Note, public_id: str) -> Optional[ResolvedMenu]:
        if parsing.classify(note) is not RecordKind.MENU_PUB:
            return None
        published = self._codec.decode_menu(note)
        if published is None:
            return None
        menu = published.to_menu()
        if not matches(menu, public_id):
            return None
        return ResolvedMenu(menu=menu, tier=self.name, note=note)


class PublicEndpointTier(_NoteTier):
    name = "public-endpoint"

    def lookup(self, public_id, note_id):
        note = self._notes.public_menu_note(public_id, note_id)
        if note is None:
            return None
        return self._decode(note, public_id)


class DirectNoteTier(_NoteTier):
    """Fetch the hinted note. With ``require_public`` only PUBLIC notes count."""

    name = "direct-note"

    def __init__(self, notes, codec, *, require_public: bool = False):
        super().__init__(notes, codec)
        self.require_public = require_public

    def lookup(self, public_id, note_id):
        if not note_id:
            return None
        if not is_note_id(note_id):
            LOGGER.debug("menu.resolve.bad_note_id id=%r", note_id)
            return None
        note = self._notes.get(note_id)
        if self.require_public and note.visibility is not Visibility.PUBLIC:
            LOGGER.debug("menu.resolve.not_public id=%s", note_id)
            return None
        return self._decode(note, public_id)


class PublicScanTier(_NoteTier):
    name = "public-scan"

    def __init__(self, notes, codec, *, max_pages: int = DEFAULT_SCAN_PAGES):
        super().__init__(notes, codec)
        self.max_pages = max_pages

    def lookup(self, public_id, note_id):
        for page in self._notes.iter_pages(
            max_pages=self.max_pages, visibility=Visibility.PUBLIC
        ):
            for note in page.notes:
                if note.visibility is not Visibility.PUBLIC:
                    continue
                # Inline payloads and attachment placeholders both name the id.
                if public_id not in note.content and not note.attachments:
                    continue
                hint = parsing.public_id_hint(note.content)
                if hint and hint != public_id:
                    continue
                found = self._decode(note, public_id)
                if found is not None:
                    return found
        return None


class LocalCatalogTier(ResolutionTier):
    """Menus published before the network tiers existed live only locally."""

    name = "local-catalog"

    def __init__(self, store: CatalogStore):
        self._store = store

    def lookup(self, public_id, note_id):
        for menu in self._store.load().menus:
            if matches(menu, public_id):
                return ResolvedMenu(menu=menu, tier=self.name)
        return None


class PublicMenuResolver:
    def __init__(self, tiers: Iterable[ResolutionTier]):
        self.tiers: List[ResolutionTier] = list(tiers)

    @classmethod
    def default(
        cls,
        notes: "NotesService",
        codec: CatalogCodec,
        store: Optional[CatalogStore] = None,
        *,
        max_pages: int = DEFAULT_SCAN_PAGES,
    ) -> "PublicMenuResolver":
        tiers: List[ResolutionTier] = [
            PublicEndpointTier(notes, codec),
            DirectNoteTier(notes, codec),
            PublicScanTier(notes, codec, max_pages=max_pages),
        ]
        if store is not None:
            tiers.append(LocalCatalogTier(store))
        return cls(tiers)

    @property
    def tier_names(self) -> Sequence[str]:
        return [t.name for t in self.tiers]

    def resolve(
        self, public_id: str, note_id: Optional[str] = None
    ) -> Optional[ResolvedMenu]:
        """First tier result for ``public_id``, or None when every tier misses."""
        if not public_id:
            return None
        for tier in self.tiers:
            try:
                found = tier.lookup(public_id, note_id)
            except (NotesError, MenuError) as exc:
                LOGGER.warning(
                    "menu.resolve.tier_failed tier=%s public_id=%s err=%s",
                    tier.name,
                    public_id,
                    exc,
                )
                continue
            if found is not None and matches(found.menu, public_id):
                LOGGER.info(
                    "menu.resolve.found tier=%s public_id=%s", tier.name, public_id
                )
                return found
            LOGGER.debug("menu.resolve.miss tier=%s public_id=%s", tier.name, public_id)
        LOGGER.info("menu.resolve.not_found public_id=%s", public_id)
        return None
