"""Business logic services for the Wallet Chat application."""

from .auth import AuthService
from .chat_rooms import ChatRoomStore
from .delivery import DeliveryTracker
from .nonce import NonceRegistry

__all__ = [
    "AuthService",
    "ChatRoomStore",
    "DeliveryTracker",
    "NonceRegistry",
]
