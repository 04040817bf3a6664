"""Public exports for note service data models."""

from __future__ import annotations

from .dto import Attachment, Note, NotePage

__all__ = [
    "Attachment",
    "Note",
    "NotePage",
]
