"""Menus and orders recorded as notes."""

from .codec import CatalogCodec, PublicationRecord
from .editor import CatalogEditor
from .errors import (
    CatalogStoreError,
    DuplicateMenuError,
    EmptyOrderError,
    MenuError,
    OrderSubmissionError,
    PublishError,
    UnknownMenuError,
)
from .importer import ImportCandidate, scan_catalog_definitions
from .ledger import BatchResult, ItemAggregate, OrderLedger, ParsedOrder, rebuild
from .merger import merge, slugify
from .models import Catalog, Menu, MenuItem, PublishedMenu
from .parsing import OrderItem, RecordKind, classify, parse_order
from .resolver import PublicMenuResolver, ResolutionTier, ResolvedMenu
from .store import CatalogStore

__all__ = [
    "BatchResult",
    "Catalog",
    "CatalogCodec",
    "CatalogEditor",
    "CatalogStore",
    "CatalogStoreError",
    "DuplicateMenuError",
    "EmptyOrderError",
    "ImportCandidate",
    "ItemAggregate",
    "Menu",
    "MenuError",
    "MenuItem",
    "OrderItem",
    "OrderLedger",
    "OrderSubmissionError",
    "ParsedOrder",
    "PublicMenuResolver",
    "PublicationRecord",
    "PublishError",
    "PublishedMenu",
    "RecordKind",
    "ResolutionTier",
    "ResolvedMenu",
    "UnknownMenuError",
    "classify",
    "merge",
    "parse_order",
    "rebuild",
    "scan_catalog_definitions",
    "slugify",
]
