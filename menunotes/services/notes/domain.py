# menunotes/services/notes/domain.py
from __future__ import annotations

import re
from enum import Enum

NOTE_NAME_PREFIX = "memos/"


class Visibility(str, Enum):
    PRIVATE = "PRIVATE"
    PROTECTED = "PROTECTED"
    PUBLIC = "PUBLIC"


def note_name(note_id: str) -> str:
    """Resource name (``memos/<id>``) for a short note id."""
    if note_id.startswith(NOTE_NAME_PREFIX):
        return note_id
    return f"{NOTE_NAME_PREFIX}{note_id}"


def note_id_from_name(name: str) -> str:
    """Short note id for a resource name; ids pass through unchanged."""
    if name.startswith(NOTE_NAME_PREFIX):
        return name[len(NOTE_NAME_PREFIX) :]
    return name


_NOTE_ID = re.compile(r"[A-Za-z0-9_-]+")


def is_note_id(value: str) -> bool:
    """True for a bare short id, safe to put in a request path."""
    return bool(_NOTE_ID.fullmatch(value or ""))
