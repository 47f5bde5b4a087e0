"""Chat rooms, their membership and per-user pins."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wallet_chat.db.session import Base
from wallet_chat.db.time import utcnow

if TYPE_CHECKING:
    from .message import DayBucket
    from .user import User


class RoomType(str, enum.Enum):
    PRIVATE = "Private"
    GROUP = "Group"


class ChatRoom(Base):
    """A private (two member) or group conversation."""

    __tablename__ = "chat_room"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_type: Mapped[RoomType] = mapped_column(
        Enum(RoomType, values_callable=lambda kinds: [kind.value for kind in kinds]),
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    # Group token bookkeeping written by the on-chain flow; stored as-is.
    algo_token: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    members: Mapped[list[User]] = relationship(
        "User",
        secondary="chat_room_member",
        back_populates="chat_rooms",
        order_by="User.id",
    )
    message_history: Mapped[list[DayBucket]] = relationship(
        "DayBucket",
        back_populates="chat_room",
        cascade="all, delete-orphan",
        order_by="DayBucket.id",
    )

    @property
    def member_ids(self) -> list[int]:
        return [member.id for member in self.members]


class ChatRoomMember(Base):
    """Association between a chat room and one of its members."""

    __tablename__ = "chat_room_member"

    chat_room_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chat_room.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_user.id", ondelete="CASCADE"), primary_key=True
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class PinnedChatRoom(Base):
    """A chat room pinned to the top of one user's summary."""

    __tablename__ = "pinned_chat_room"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_user.id", ondelete="CASCADE"), primary_key=True
    )
    chat_room_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chat_room.id", ondelete="CASCADE"), primary_key=True
    )
    pinned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
