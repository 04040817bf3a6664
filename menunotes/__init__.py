"""Menu catalogs and order taking on top of a note service."""

from menunotes.base import MenuNotesService, PublicMenuDesk
from menunotes.config import MenuNotesConfig, load_config

__all__ = ["MenuNotesService", "PublicMenuDesk", "MenuNotesConfig", "load_config"]
