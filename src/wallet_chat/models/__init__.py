"""SQLAlchemy models for the Wallet Chat application."""

from .chat_room import ChatRoom, ChatRoomMember, PinnedChatRoom, RoomType
from .contact import Contact
from .message import DayBucket, Message, MessageReceipt
from .user import User

__all__ = [
    "ChatRoom", "ChatRoomMember", "PinnedChatRoom", "RoomType",
    "Contact",
    "DayBucket", "Message", "MessageReceipt",
    "User",
]
