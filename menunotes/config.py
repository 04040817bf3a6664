"""
Runtime configuration.

Values are layered, later layers winning:

  1. dataclass defaults
  2. ``config.json`` in the config directory
  3. ``MENUNOTES_*`` environment variables
  4. keyword overrides passed to ``load_config``

None in an override means "not given" and does not mask lower layers.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = os.path.join("~", ".config", "menunotes")
CONFIG_FILENAME = "config.json"
ENV_PREFIX = "MENUNOTES_"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class MenuNotesConfig:
    # Note storage service
    base_url: str = "http://localhost:5230"
    access_token: Optional[str] = None
    # Where anonymous clients reach the public surface; base_url when unset.
    public_base_url: Optional[str] = None
    timeout: Optional[float] = 30.0
    page_size: int = 50

    # Policy limits of the note service
    content_size_limit: int = 8192
    scan_max_pages: int = 5

    # Local catalog slot
    catalog_namespace: str = "default"
    config_dir: str = DEFAULT_CONFIG_DIR

    @property
    def public_url(self) -> str:
        return (self.public_base_url or self.base_url).rstrip("/")

    @property
    def resolved_config_dir(self) -> str:
        return os.path.expanduser(self.config_dir)


_FIELDS = {f.name: f for f in dataclasses.fields(MenuNotesConfig)}
_INT_FIELDS = {"page_size", "content_size_limit", "scan_max_pages"}
_FLOAT_FIELDS = {"timeout"}


def _coerce(name: str, value: Any) -> Any:
    if value is None:
        return None
    if name in _INT_FIELDS:
        try:
            number = int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value for {name}: {value!r}") from exc
        if number < 1:
            raise ConfigError(f"{name} must be positive, got {number}")
        return number
    if name in _FLOAT_FIELDS:
        if isinstance(value, str) and value.strip().lower() in ("", "none"):
            return None
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value for {name}: {value!r}") from exc
    return str(value)


def _read_file(config_dir: str) -> Dict[str, Any]:
    path = os.path.join(os.path.expanduser(config_dir), CONFIG_FILENAME)
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        LOGGER.warning("Could not load config file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        LOGGER.warning("Ignoring config file %s: not a JSON object", path)
        return {}
    unknown = sorted(set(data) - set(_FIELDS))
    if unknown:
        LOGGER.debug("Ignoring unknown config keys: %s", ", ".join(unknown))
    return {k: v for k, v in data.items() if k in _FIELDS}


def _read_env(environ: Mapping[str, str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name in _FIELDS:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw is not None:
            out[name] = raw
    return out


def load_config(
    *,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> MenuNotesConfig:
    """Build the effective configuration (see module docstring for layering)."""
    env = os.environ if environ is None else environ
    unknown = sorted(set(overrides) - set(_FIELDS))
    if unknown:
        raise ConfigError(f"Unknown config option(s): {', '.join(unknown)}")

    env_values = _read_env(env)
    given = {k: v for k, v in overrides.items() if v is not None}
    config_dir = (
        given.get("config_dir") or env_values.get("config_dir") or DEFAULT_CONFIG_DIR
    )

    values: Dict[str, Any] = {}
    for layer in (_read_file(config_dir), env_values, given):
        for name, value in layer.items():
            values[name] = _coerce(name, value)
    values["config_dir"] = config_dir
    return MenuNotesConfig(**values)
