"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    chat_rooms_router,
    contacts_router,
    me_router,
    profile_router,
)

__all__ = [
    "auth_router",
    "chat_rooms_router",
    "contacts_router",
    "me_router",
    "profile_router",
]
