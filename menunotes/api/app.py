"""
FastAPI application factory.

Run with ``menunotes serve`` or ``uvicorn menunotes.api.app:app``.
"""

from typing import Optional

from fastapi import FastAPI

from menunotes.base import PublicMenuDesk
from menunotes.config import MenuNotesConfig, load_config

from .routers import health, public


def create_app(
    config: Optional[MenuNotesConfig] = None,
    *,
    desk: Optional[PublicMenuDesk] = None,
) -> FastAPI:
    app = FastAPI(
        title="menunotes public API",
        description="Anonymous lookup of published menus and order intake",
        version="0.1.0",
    )
    app.state.config = config or load_config()
    app.state.desk = desk
    app.include_router(health.router)
    app.include_router(public.router)
    return app


app = create_app()
