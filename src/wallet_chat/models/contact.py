"""Models describing a user's contact list."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wallet_chat.db.session import Base
from wallet_chat.db.time import utcnow

if TYPE_CHECKING:
    from .user import User


class Contact(Base):
    """An owner-local alias for another user plus the private room they share."""

    __tablename__ = "contact"

    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_user.id", ondelete="CASCADE"), primary_key=True
    )
    contact_user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_user.id", ondelete="CASCADE"), primary_key=True
    )
    name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    chat_room_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("chat_room.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    owner: Mapped[User] = relationship("User", foreign_keys=[owner_id], back_populates="contacts")
    contact_details: Mapped[User] = relationship("User", foreign_keys=[contact_user_id])
