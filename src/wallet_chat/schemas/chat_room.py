"""Chat room and message Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class CallDetails(BaseModel):
    call_type: str | None = Field(None, alias="callType")
    call_duration: str | None = Field(None, alias="callDuration")
    call_reject_reason: Literal["Missed", "Busy"] | None = Field(None, alias="callRejectReason")

    model_config = ConfigDict(populate_by_name=True)


class MessageCreate(BaseModel):
    """Payload of a new message as sent by a client."""

    message_type: Literal["text", "image", "call", "voice-note"] = Field(
        "text", alias="messageType"
    )
    message: str | None = None
    image_url: str | None = Field(None, alias="imageUrl")
    call_details: CallDetails | None = Field(None, alias="callDetails")
    voice_note_url: str | None = Field(None, alias="voiceNoteUrl")
    voice_note_duration: str | None = Field(None, alias="voiceNoteDuration")

    model_config = ConfigDict(populate_by_name=True)


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    members: list[str] = Field(..., description="Usernames of the other group members")


class ReceiptAck(BaseModel):
    """Client acknowledgement of delivery or read for messages of one day bucket."""

    chat_room_id: int = Field(..., alias="chatRoomId")
    day: int
    message_id: int | None = Field(None, alias="messageId")
    message_ids: list[int] | None = Field(None, alias="messageIds")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def all_message_ids(self) -> list[int]:
        ids = list(self.message_ids or [])
        if self.message_id is not None and self.message_id not in ids:
            ids.append(self.message_id)
        return ids


class SendMessageEvent(MessageCreate):
    chat_room_id: int = Field(..., alias="chatRoomId")


class JoinRoomEvent(BaseModel):
    chat_room_id: int = Field(..., alias="chatRoomId")

    model_config = ConfigDict(populate_by_name=True)
