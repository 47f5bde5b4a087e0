"""Day-bucketed message history and per-member receipt state."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wallet_chat.db.session import Base
from wallet_chat.db.time import utcnow

if TYPE_CHECKING:
    from .chat_room import ChatRoom


class DayBucket(Base):
    """All messages of one room sent on one calendar day.

    ``day`` is the epoch millisecond of that day's midnight. Buckets are only
    ever appended; the autoincrement id preserves their creation order and a
    message only ever joins the most recent bucket of its room.
    """

    __tablename__ = "day_bucket"
    __table_args__ = (Index("ix_day_bucket_room_day", "chat_room_id", "day"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chat_room_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chat_room.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day: Mapped[int] = mapped_column(BigInteger, nullable=False)

    chat_room: Mapped[ChatRoom] = relationship("ChatRoom", back_populates="message_history")
    messages: Mapped[list[Message]] = relationship(
        "Message",
        back_populates="day_bucket",
        cascade="all, delete-orphan",
        order_by="Message.id",
    )


class Message(Base):
    """A single chat message inside a day bucket."""

    __tablename__ = "message"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    day_bucket_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("day_bucket.id", ondelete="CASCADE"), nullable=False, index=True
    )
    chat_room_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chat_room.id", ondelete="CASCADE"), nullable=False, index=True
    )
    message_type: Mapped[str] = mapped_column(String(16), nullable=False)
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_user.id"), nullable=False)

    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    call_details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    voice_note_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    voice_note_duration: Mapped[str | None] = mapped_column(String(32), nullable=True)

    read_status: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    delivered_status: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    time_sent: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    day_bucket: Mapped[DayBucket] = relationship("DayBucket", back_populates="messages")
    receipts: Mapped[list[MessageReceipt]] = relationship(
        "MessageReceipt",
        back_populates="message",
        cascade="all, delete-orphan",
        order_by="MessageReceipt.user_id",
    )

    @property
    def undelivered_members(self) -> list[int]:
        return [receipt.user_id for receipt in self.receipts if not receipt.delivered]

    @property
    def unread_members(self) -> list[int]:
        return [
            receipt.user_id
            for receipt in self.receipts
            if receipt.is_recipient and not receipt.read
        ]


class MessageReceipt(Base):
    """Delivery and read state of one message for one room member.

    The undelivered/unread member sets of a message and the per-user
    undelivered/unread marker lists are both read from these rows.
    """

    __tablename__ = "message_receipt"

    message_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("message.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_user.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    # False for the sender, who never has the message unread.
    is_recipient: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    delivered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    message: Mapped[Message] = relationship("Message", back_populates="receipts")
