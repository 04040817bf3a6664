from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

EXTRA_ENV_VARS = ("MENUNOTES_NOTES_EXTRA", "MENUNOTES_EXTRA")

_EXTRA_ALIASES = {
    "allow": "allow",
    "forbid": "forbid",
    "ignore": "ignore",
    "strict": "forbid",
    "lenient": "allow",
}


def extra_mode(
    environ: Optional[Mapping[str, str]] = None, default: str = "ignore"
) -> str:
    """
    Pydantic extra-mode for wire models, from the first of EXTRA_ENV_VARS set.
    Unrecognised values fall back to ``default``.
    """
    env = os.environ if environ is None else environ
    for var in EXTRA_ENV_VARS:
        raw = (env.get(var) or "").strip().lower()
        if raw:
            return _EXTRA_ALIASES.get(raw, default)
    return default


class WireModel(BaseModel):
    """
    Base model for note-service payloads.

    The server adds fields between releases, so unknown keys are ignored by
    default. Set ``MENUNOTES_NOTES_EXTRA=forbid`` before import to catch
    drift while developing against a new server version.
    """

    model_config = ConfigDict(extra=extra_mode(), populate_by_name=True)


__all__ = ["WireModel", "extra_mode"]
