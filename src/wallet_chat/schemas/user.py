"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserResponse(BaseModel):
    """The signed-in user's own record."""

    id: int = Field(..., serialization_alias="_id")
    username: str
    wallet_address: str | None = Field(None, serialization_alias="aptosAddress")
    public_key: str | None = Field(None, serialization_alias="aptosPublicKey")
    avatar: str | None = None
    bio: str | None = None
    status: str | None = None
    chat_room_ids: list[int] = Field(default_factory=list, serialization_alias="chatRooms")
    pinned_chat_room_ids: list[int] = Field(
        default_factory=list, serialization_alias="pinnedChatRooms"
    )
    created_at: datetime | None = Field(None, serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdateRequest(BaseModel):
    """Editable profile fields."""

    avatar: str | None = Field(None, max_length=2048)
    bio: str | None = Field(None, max_length=500)
    status: str | None = Field(None, max_length=140)
