"""Entry point wiring the note service, the local catalog and the menu tools."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Mapping, Optional, Tuple, Union

import requests

from menunotes.config import MenuNotesConfig, load_config
from menunotes.services.menu.codec import CatalogCodec, PublicationRecord
from menunotes.services.menu.content import (
    build_order_content,
    order_lines,
    requested_lines,
)
from menunotes.services.menu.editor import CatalogEditor
from menunotes.services.menu.errors import (
    EmptyOrderError,
    OrderSubmissionError,
    PublishError,
    UnknownMenuError,
)
from menunotes.services.menu.importer import (
    ImportCandidate,
    scan_catalog_definitions,
)
from menunotes.services.menu.ledger import OrderLedger
from menunotes.services.menu.merger import merge
from menunotes.services.menu.models import Catalog, Menu
from menunotes.services.menu.resolver import (
    DirectNoteTier,
    PublicMenuResolver,
    PublicScanTier,
)
from menunotes.services.menu.store import CatalogStore
from menunotes.services.notes import NotesError, NotesService, Visibility
from menunotes.services.notes.models import Note

LOGGER = logging.getLogger(__name__)

USER_AGENT = "menunotes"


def build_session(config: MenuNotesConfig) -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
    if config.access_token:
        session.headers["Authorization"] = f"Bearer {config.access_token}"
    return session


class MenuNotesService:
    """
    Menus and orders on top of a note service.

    Usage:
        api = MenuNotesService(load_config())
        api.editor.add_menu("Lunch")
        api.submit_order("lunch", {"rice": 2})
        for order in api.ledger().refresh():
            ...
    """

    def __init__(
        self,
        config: Optional[MenuNotesConfig] = None,
        *,
        session: Optional[requests.Session] = None,
        notes: Optional[NotesService] = None,
    ):
        self.config = config or load_config()
        if notes is None:
            notes = NotesService(
                self.config.base_url,
                session or build_session(self.config),
                public_base_url=self.config.public_url,
                page_size=self.config.page_size,
                timeout=self.config.timeout,
            )
        self.notes = notes
        self.store = CatalogStore(
            self.config.resolved_config_dir, self.config.catalog_namespace
        )
        self.codec = CatalogCodec(notes, size_limit=self.config.content_size_limit)
        self.editor = CatalogEditor(self.store)

    # ------------------------------- orders --------------------------------

    def ledger(self) -> OrderLedger:
        return OrderLedger(self.notes)

    def submit_order(
        self,
        menu_id: str,
        quantities: Mapping[str, int],
        *,
        remark: str = "",
        customer_name: Optional[str] = None,
    ) -> Note:
        """
        Record an order against a local menu as a PROTECTED note.

        Raises:
            UnknownMenuError: no such menu in the local catalog.
            EmptyOrderError: no positive quantity.
            OrderSubmissionError: the note could not be created.
        """
        menu = self.editor.menu(menu_id)
        lines = order_lines(menu, quantities)
        if not lines:
            raise EmptyOrderError("Set a quantity for at least one item.")
        content = build_order_content(
            menu.id,
            menu.name,
            lines,
            remark=remark,
            customer_name=customer_name,
            placed_at=datetime.now(),
        )
        try:
            note = self.notes.create(content, Visibility.PROTECTED)
        except NotesError as exc:
            LOGGER.error("Order submission failed for menu %s: %s", menu_id, exc)
            raise OrderSubmissionError(f"Could not create order note: {exc}") from exc
        LOGGER.info("menu.order.created id=%s menu=%s", note.id, menu.id)
        return note

    # ------------------------------ publishing -----------------------------

    def publish_catalog(
        self, *, visibility: Visibility = Visibility.PROTECTED
    ) -> PublicationRecord:
        """Export the whole local catalog as a ``menu-def`` note."""
        catalog = self.store.save(self.store.load())
        return self.codec.encode_catalog(catalog, visibility=visibility)

    def publish_menu(self, menu_id: str) -> PublicationRecord:
        """Publish one menu as a PUBLIC ``menu-pub`` note, keeping its public id."""
        menu = self.editor.menu(menu_id)
        if not menu.allow_public_order:
            raise PublishError(f"Menu {menu_id} is not open for public ordering.")
        record = self.codec.encode_menu(menu)
        if record.public_id and record.public_id != menu.public_id:
            self.editor.set_public_id(menu.id, record.public_id)
        return record

    def set_public_order(
        self, menu_id: str, allow: bool, *, publish: bool = True
    ) -> Tuple[Menu, Optional[PublicationRecord]]:
        """
        Toggle public ordering. Enabling it publishes the menu unless
        ``publish`` is False; disabling it deletes the menu's published
        notes. The toggle is persisted first, so a ``PublishError`` leaves
        the local flag set but the published notes out of step.
        """
        menu = self.editor.set_public_order(menu_id, allow)
        if not allow:
            if menu.public_id:
                self.codec.withdraw_menu(
                    menu.public_id, max_pages=self.config.scan_max_pages
                )
            return menu, None
        if not publish:
            return menu, None
        return menu, self.publish_menu(menu.id)

    def public_link(self, menu_id: str, note_id: Optional[str] = None) -> str:
        menu = self.editor.menu(menu_id)
        if not menu.public_id:
            raise UnknownMenuError(f"Menu {menu_id} has no public id yet.")
        link = f"{self.config.public_url}/menu/public/{menu.public_id}"
        if note_id:
            link += f"?note={note_id}"
        return link

    # ------------------------------- import --------------------------------

    def import_candidates(self) -> List[ImportCandidate]:
        return scan_catalog_definitions(
            self.notes, self.codec, max_pages=self.config.scan_max_pages
        )

    def apply_import(
        self, source: Union[ImportCandidate, Catalog, Iterable[Menu]]
    ) -> Catalog:
        """Merge imported menus into the local catalog and persist the result."""
        if isinstance(source, ImportCandidate):
            source = source.catalog
        merged = merge(self.store.load(), source)
        return self.store.save(merged)

    # ------------------------------ resolution -----------------------------

    def resolver(self) -> PublicMenuResolver:
        """Client-side resolver: every tier, local catalog last."""
        return PublicMenuResolver.default(
            self.notes,
            self.codec,
            self.store,
            max_pages=self.config.scan_max_pages,
        )


class PublicMenuDesk:
    """
    Server side of the public surface: look up published menus and take
    anonymous orders. Only PUBLIC ``menu-pub`` notes are ever served.
    """

    def __init__(
        self,
        notes: NotesService,
        *,
        size_limit: int = 8192,
        max_pages: int = 5,
    ):
        self.notes = notes
        self.codec = CatalogCodec(notes, size_limit=size_limit)
        self.resolver = PublicMenuResolver(
            [
                DirectNoteTier(notes, self.codec, require_public=True),
                PublicScanTier(notes, self.codec, max_pages=max_pages),
            ]
        )

    @classmethod
    def from_config(cls, config: MenuNotesConfig) -> "PublicMenuDesk":
        notes = NotesService(
            config.base_url,
            build_session(config),
            page_size=config.page_size,
            timeout=config.timeout,
        )
        return cls(
            notes,
            size_limit=config.content_size_limit,
            max_pages=config.scan_max_pages,
        )

    def find(self, public_id: str, note_id: Optional[str] = None):
        return self.resolver.resolve(public_id, note_id)

    def place_order(
        self,
        public_id: str,
        items: Iterable[Tuple[str, str, int]],
        *,
        customer_name: str,
        note_id: Optional[str] = None,
        remark: str = "",
    ) -> Optional[Tuple[Note, int]]:
        """
        Create a PUBLIC order note for a published menu. Returns the note and
        its total quantity, or None when the menu cannot be found or is
        closed for ordering.

        Raises:
            EmptyOrderError: nothing orderable was requested.
            OrderSubmissionError: the note could not be created.
        """
        found = self.find(public_id, note_id)
        if found is None:
            return None
        menu = found.menu
        lines = requested_lines(menu, items)
        if not lines:
            raise EmptyOrderError("No orderable items in request.")
        content = build_order_content(
            menu.id,
            menu.name,
            lines,
            remark=remark,
            customer_name=customer_name,
            placed_at=datetime.now(),
        )
        try:
            note = self.notes.create(content, Visibility.PUBLIC)
        except NotesError as exc:
            LOGGER.error("Public order failed for %s: %s", public_id, exc)
            raise OrderSubmissionError(f"Could not create order note: {exc}") from exc
        qty = sum(line.quantity for line in lines)
        LOGGER.info(
            "menu.public_order.created id=%s menu=%s qty=%d", note.id, menu.id, qty
        )
        return note, qty
