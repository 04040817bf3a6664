"""High-level note data transfer objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, List, Optional, Tuple

from ..domain import Visibility


@dataclass(frozen=True)
class Attachment:
    """Metadata (and possibly bytes) for a note attachment."""

    id: str
    filename: str
    mime_type: str
    url: Optional[str] = None
    content: Optional[bytes] = field(default=None, repr=False)

    @property
    def is_json(self) -> bool:
        return "json" in self.mime_type.lower() or self.filename.lower().endswith(
            ".json"
        )


@dataclass(frozen=True)
class Note:
    """A note as returned by the storage service. Read-only to this package."""

    id: str
    content: str
    tags: FrozenSet[str] = frozenset()
    visibility: Visibility = Visibility.PRIVATE
    create_time: Optional[datetime] = None
    attachments: Tuple[Attachment, ...] = ()


@dataclass(frozen=True)
class NotePage:
    notes: List[Note]
    next_page_token: Optional[str]
