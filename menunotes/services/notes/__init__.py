"""Public API for the note storage service."""

from .client import (
    NotesApiError,
    NotesAuthError,
    NotesConnectionError,
    NotesError,
    NotesRateLimited,
)
from .domain import Visibility
from .models import Attachment, Note, NotePage
from .service import NoteNotFound, NotesService, wire_from_note

__all__ = [
    "NotesService",
    "Note",
    "NotePage",
    "Attachment",
    "Visibility",
    "NotesError",
    "NotesApiError",
    "NotesAuthError",
    "NotesConnectionError",
    "NotesRateLimited",
    "NoteNotFound",
    "wire_from_note",
]
