"""Request dependencies shared by the routers."""

from fastapi import Request

from menunotes.base import PublicMenuDesk


def get_desk(request: Request) -> PublicMenuDesk:
    """The app's PublicMenuDesk, built from its config on first use."""
    state = request.app.state
    desk = getattr(state, "desk", None)
    if desk is None:
        desk = PublicMenuDesk.from_config(state.config)
        state.desk = desk
    return desk
