"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .chat_rooms import router as chat_rooms_router
from .contacts import router as contacts_router
from .me import router as me_router
from .profile import router as profile_router

__all__ = [
    "auth_router",
    "chat_rooms_router",
    "contacts_router",
    "me_router",
    "profile_router",
]
