"""Errors raised by the menu layer. Parsing and resolution never raise."""

from __future__ import annotations


class MenuError(Exception):
    """Base menu error."""


class CatalogStoreError(MenuError):
    """The persisted catalog slot could not be read or written."""


class PublishError(MenuError):
    """A catalog or menu could not be published as a note."""


class UnknownMenuError(MenuError):
    pass


class DuplicateMenuError(MenuError):
    pass


class OrderSubmissionError(MenuError):
    """The order note was not created; the caller should retry."""


class EmptyOrderError(OrderSubmissionError):
    """No item with a positive quantity was requested."""
