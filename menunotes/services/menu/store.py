"""Persisted catalog slot: one versioned JSON file per catalog namespace."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Union

from pydantic import ValidationError

from .errors import CatalogStoreError
from .models import Catalog, dump_json

LOGGER = logging.getLogger(__name__)


class CatalogStore:
    """
    Load-at-start, save-after-mutation storage for the local catalog.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so a reader never sees a partial catalog.
    A slot that exists but cannot be read raises ``CatalogStoreError``
    instead of being replaced by an empty catalog.
    """

    def __init__(self, config_dir: Union[str, Path], namespace: str = "default"):
        self.config_dir = Path(os.path.expanduser(str(config_dir)))
        self.namespace = namespace

    @property
    def path(self) -> Path:
        return self.config_dir / f"catalog.{self.namespace}.json"

    def load(self) -> Catalog:
        path = self.path
        if not path.exists():
            LOGGER.debug("menu.store.empty path=%s", path)
            return Catalog()
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            raise CatalogStoreError(f"Could not read catalog {path}: {exc}") from exc
        try:
            if isinstance(data, list):
                # Slots written before catalogs were versioned hold a bare list.
                return Catalog.model_validate({"menus": data})
            return Catalog.model_validate(data)
        except ValidationError as exc:
            raise CatalogStoreError(f"Invalid catalog in {path}: {exc}") from exc

    def save(self, catalog: Catalog) -> Catalog:
        """Persist ``catalog`` and return what was written."""
        catalog = catalog.ensure_public_ids()
        path = self.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(dump_json(catalog, indent=2))
                os.chmod(tmp, 0o600)
                os.replace(tmp, path)
            except BaseException:
                if os.path.exists(tmp):
                    os.remove(tmp)
                raise
        except OSError as exc:
            raise CatalogStoreError(f"Could not write catalog {path}: {exc}") from exc
        LOGGER.debug("menu.store.saved path=%s menus=%d", path, len(catalog.menus))
        return catalog

    def update(self, fn: Callable[[Catalog], Catalog]) -> Catalog:
        """Load, apply ``fn``, save. Returns the saved catalog."""
        return self.save(fn(self.load()))
