"""Delivery and read receipt bookkeeping.

Receipt flags only ever move from false to true through guarded updates, and
a message's completion flag is flipped the same way. The completion event is
published only by the call whose guarded update actually changed the message
row, so retries and concurrent acknowledgements never emit it twice.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from wallet_chat.models import Message, MessageReceipt
from wallet_chat.services.chat_rooms import ChatRoomStore

MESSAGE_DELIVERED_EVENT = "user:messageDelivered"
MESSAGE_READ_EVENT = "user:messageReadByAllMembers"


class EventPublisher(Protocol):
    """Fan-out target for room-scoped events."""

    async def emit_to_room(self, room_id: int, event: str, payload: dict[str, Any]) -> None: ...


@dataclass
class ReceiptOutcome:
    """Result of one delivery or read acknowledgement."""

    message_id: int
    remaining: list[int] = field(default_factory=list)
    completed: bool = False
    emitted: bool = False


class DeliveryTracker:
    """Shrinks per-message undelivered/unread member sets."""

    def __init__(
        self,
        db: Session,
        publisher: EventPublisher,
        store: ChatRoomStore | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.db = db
        self.publisher = publisher
        self.store = store or ChatRoomStore(db)
        self.log = logger or logging.getLogger(__name__)

    async def mark_delivered(
        self,
        room_id: int,
        day: int,
        message_id: int,
        member_ids: Iterable[int],
    ) -> ReceiptOutcome:
        """Record that ``member_ids`` have received the message."""
        message = self.store.get_message(room_id, day, message_id)
        ids = set(member_ids)
        if ids:
            self.db.execute(
                update(MessageReceipt)
                .where(
                    MessageReceipt.message_id == message.id,
                    MessageReceipt.user_id.in_(ids),
                    MessageReceipt.delivered.is_(False),
                )
                .values(delivered=True)
                .execution_options(synchronize_session=False)
            )
        remaining = self._pending(message.id, MessageReceipt.delivered.is_(False))
        outcome = ReceiptOutcome(message_id=message.id, remaining=remaining)
        if not remaining:
            outcome.completed = True
            outcome.emitted = self._flip(message.id, Message.delivered_status)
        self.db.commit()
        self.db.expire(message)

        if outcome.emitted:
            self.log.info("message delivered room_id=%s message_id=%s", room_id, message.id)
            await self.publisher.emit_to_room(
                room_id, MESSAGE_DELIVERED_EVENT, self._payload(message, room_id, day)
            )
        return outcome

    async def mark_read(
        self,
        room_id: int,
        day: int,
        message_id: int,
        user_id: int,
    ) -> ReceiptOutcome:
        """Record that ``user_id`` has read the message.

        The user's unread marker for the message is the same receipt row, so
        it disappears in the same update.
        """
        message = self.store.get_message(room_id, day, message_id)
        self.db.execute(
            update(MessageReceipt)
            .where(
                MessageReceipt.message_id == message.id,
                MessageReceipt.user_id == user_id,
                MessageReceipt.is_recipient.is_(True),
                MessageReceipt.read.is_(False),
            )
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        remaining = self._pending(
            message.id,
            MessageReceipt.is_recipient.is_(True),
            MessageReceipt.read.is_(False),
        )
        outcome = ReceiptOutcome(message_id=message.id, remaining=remaining)
        if not remaining:
            outcome.completed = True
            outcome.emitted = self._flip(message.id, Message.read_status)
        self.db.commit()
        self.db.expire(message)

        if outcome.emitted:
            self.log.info("message read by all room_id=%s message_id=%s", room_id, message.id)
            await self.publisher.emit_to_room(
                room_id, MESSAGE_READ_EVENT, self._payload(message, room_id, day)
            )
        return outcome

    def _pending(self, message_id: int, *conditions: Any) -> list[int]:
        rows = self.db.execute(
            select(MessageReceipt.user_id)
            .where(MessageReceipt.message_id == message_id, *conditions)
            .order_by(MessageReceipt.user_id)
        ).all()
        return [user_id for (user_id,) in rows]

    def _flip(self, message_id: int, column: Any) -> bool:
        result = self.db.execute(
            update(Message)
            .where(Message.id == message_id, column.is_(False))
            .values({column: True})
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def _payload(message: Message, room_id: int, day: int) -> dict[str, Any]:
        return {
            "messageId": message.id,
            "senderId": message.sender_id,
            "chatRoomId": room_id,
            "day": day,
        }
