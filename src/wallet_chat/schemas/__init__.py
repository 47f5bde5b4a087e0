"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .auth import NonceRequest, NonceResponse, VerifyRequest, VerifyResponse
from .chat_room import GroupCreate, MessageCreate, ReceiptAck
from .contact import ContactCreate, ContactDelete
from .user import ProfileUpdateRequest, UserResponse

__all__ = [
    "NonceRequest", "NonceResponse", "VerifyRequest", "VerifyResponse",
    "GroupCreate", "MessageCreate", "ReceiptAck",
    "ContactCreate", "ContactDelete",
    "ProfileUpdateRequest", "UserResponse",
]
