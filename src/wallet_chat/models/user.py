"""SQLAlchemy models for chat users."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wallet_chat.db.session import Base
from wallet_chat.db.time import utcnow

if TYPE_CHECKING:
    from .chat_room import ChatRoom
    from .contact import Contact


class User(Base):
    """Chat identity, created on the first successful wallet sign-in."""

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    # Legacy username/password accounts; the wallet flow never sets it.
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    wallet_address: Mapped[str | None] = mapped_column(
        String(130), unique=True, nullable=True, index=True
    )
    public_key: Mapped[str | None] = mapped_column(String(130), nullable=True)

    avatar: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    chat_rooms: Mapped[list[ChatRoom]] = relationship(
        "ChatRoom",
        secondary="chat_room_member",
        back_populates="members",
        order_by="ChatRoom.id",
    )
    pinned_chat_rooms: Mapped[list[ChatRoom]] = relationship(
        "ChatRoom",
        secondary="pinned_chat_room",
        order_by="PinnedChatRoom.pinned_at",
        viewonly=True,
    )
    contacts: Mapped[list[Contact]] = relationship(
        "Contact",
        foreign_keys="Contact.owner_id",
        back_populates="owner",
        cascade="all, delete-orphan",
        order_by="Contact.created_at",
    )

    @property
    def chat_room_ids(self) -> list[int]:
        return [room.id for room in self.chat_rooms]

    @property
    def pinned_chat_room_ids(self) -> list[int]:
        return [room.id for room in self.pinned_chat_rooms]
