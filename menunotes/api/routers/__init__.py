"""Routers mounted by ``create_app``."""
