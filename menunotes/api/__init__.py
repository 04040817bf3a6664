"""Public HTTP surface for anonymous menu lookup and ordering."""

from .app import create_app

__all__ = ["create_app"]
