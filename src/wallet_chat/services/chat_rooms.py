"""Chat room storage: membership, day-bucketed history and summaries."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from wallet_chat.core.errors import ConflictError, MissingFieldsError, NotFoundError
from wallet_chat.core.settings import settings
from wallet_chat.db.time import utcnow
from wallet_chat.models import (
    ChatRoom,
    Contact,
    DayBucket,
    Message,
    MessageReceipt,
    PinnedChatRoom,
    RoomType,
    User,
)
from wallet_chat.schemas.chat_room import MessageCreate

# Content field each message type must carry.
_REQUIRED_CONTENT = {
    "text": "message",
    "image": "image_url",
    "call": "call_details",
    "voice-note": "voice_note_url",
}


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def day_key(time_sent: datetime, tz: ZoneInfo | None = None) -> int:
    """Return the epoch millisecond of midnight of ``time_sent``'s calendar day."""
    zone = tz or ZoneInfo(settings.message_day_timezone)
    local = as_utc(time_sent).astimezone(zone)  # type: ignore[union-attr]
    midnight = datetime(local.year, local.month, local.day, tzinfo=zone)
    return int(midnight.timestamp() * 1000)


def serialize_user_public(user: User) -> dict[str, Any]:
    return {
        "_id": user.id,
        "username": user.username,
        "avatar": user.avatar,
        "bio": user.bio,
        "status": user.status,
    }


def serialize_message(message: Message) -> dict[str, Any]:
    """Serialize a message with its current receipt member sets."""
    time_sent = as_utc(message.time_sent)
    return {
        "_id": message.id,
        "messageType": message.message_type,
        "sender": message.sender_id,
        "readStatus": message.read_status,
        "deliveredStatus": message.delivered_status,
        "undeliveredMembers": message.undelivered_members,
        "unreadMembers": message.unread_members,
        "timeSent": time_sent.isoformat() if time_sent else None,
        "message": message.message,
        "imageUrl": message.image_url,
        "callDetails": message.call_details,
        "voiceNoteUrl": message.voice_note_url,
        "voiceNoteDuration": message.voice_note_duration,
    }


def serialize_chat_room(room: ChatRoom) -> dict[str, Any]:
    return {
        "_id": room.id,
        "roomType": room.room_type.value,
        "name": room.name,
        "members": [serialize_user_public(member) for member in room.members],
        "messageHistory": [
            {
                "day": bucket.day,
                "messages": [serialize_message(message) for message in bucket.messages],
            }
            for bucket in room.message_history
        ],
        "algoToken": room.algo_token,
    }


class ChatRoomStore:
    """Owns chat rooms and their per-day message history.

    Args:
        db: Active SQLAlchemy session.
        clock: Returns the current time; messages are bucketed by the day it reports.
        tz: Zone whose calendar days define the buckets.
    """

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utcnow,
        tz: ZoneInfo | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.db = db
        self.clock = clock
        self.tz = tz or ZoneInfo(settings.message_day_timezone)
        self.log = logger or logging.getLogger(__name__)

    # --- rooms --------------------------------------------------------------------
    def create_chat_room(
        self,
        room_type: RoomType,
        member_ids: Iterable[int],
        name: str | None = None,
        created_by: int | None = None,
    ) -> ChatRoom:
        unique_ids = list(dict.fromkeys(member_ids))
        if room_type is RoomType.PRIVATE and len(unique_ids) != 2:
            raise ConflictError("A private chat room needs exactly two members")

        members = self.db.query(User).filter(User.id.in_(unique_ids)).all()
        if len(members) != len(unique_ids):
            raise NotFoundError("User does not exist")

        room = ChatRoom(room_type=room_type, name=name, created_by=created_by)
        room.members = members
        self.db.add(room)
        self.db.flush()
        self.log.info(
            "chat room created room_id=%s type=%s members=%s",
            room.id,
            room_type.value,
            len(members),
        )
        return room

    def create_group(self, creator: User, name: str, usernames: Iterable[str]) -> ChatRoom:
        """Create a group room holding the creator and the named users."""
        wanted = [username for username in dict.fromkeys(usernames) if username != creator.username]
        if not wanted:
            raise MissingFieldsError(["members"])

        found = self.db.query(User).filter(User.username.in_(wanted)).all()
        by_name = {user.username: user for user in found}
        unknown = [username for username in wanted if username not in by_name]
        if unknown:
            raise NotFoundError(f"User does not exist: {', '.join(unknown)}")

        room = self.create_chat_room(
            RoomType.GROUP,
            [creator.id, *(by_name[username].id for username in wanted)],
            name=name,
            created_by=creator.id,
        )
        self.db.commit()
        self.db.refresh(room)
        return room

    def get_chat_room(self, room_id: int) -> ChatRoom:
        room = self.db.get(ChatRoom, room_id)
        if room is None:
            raise NotFoundError("Chat does not exist")
        return room

    def get_member_room(self, room_id: int, user_id: int) -> ChatRoom:
        """Return the room if ``user_id`` belongs to it."""
        room = self.get_chat_room(room_id)
        if user_id not in room.member_ids:
            raise NotFoundError("Chat does not exist")
        return room

    def delete_chat_room(self, room_id: int) -> None:
        room = self.db.get(ChatRoom, room_id)
        if room is None:
            return
        self._delete_history(room_id)
        self.db.execute(delete(PinnedChatRoom).where(PinnedChatRoom.chat_room_id == room_id))
        self.db.query(Contact).filter(Contact.chat_room_id == room_id).update(
            {Contact.chat_room_id: None}, synchronize_session=False
        )
        self.db.expire(room)
        self.db.delete(room)
        self.db.flush()
        self.log.info("chat room deleted room_id=%s", room_id)

    def clear_chat_room(self, room_id: int) -> None:
        """Empty a room's history.

        Receipts go with the messages, which also removes every member's
        unread and undelivered markers for the room.
        """
        room = self.get_chat_room(room_id)
        self._delete_history(room_id)
        self.db.commit()
        self.db.expire(room)
        self.log.info("chat room cleared room_id=%s", room_id)

    def _delete_history(self, room_id: int) -> None:
        message_ids = select(Message.id).where(Message.chat_room_id == room_id)
        self.db.execute(delete(MessageReceipt).where(MessageReceipt.message_id.in_(message_ids)))
        self.db.execute(delete(Message).where(Message.chat_room_id == room_id))
        self.db.execute(delete(DayBucket).where(DayBucket.chat_room_id == room_id))

    # --- messages -----------------------------------------------------------------
    def append_message(
        self,
        room_id: int,
        sender_id: int,
        payload: MessageCreate,
    ) -> tuple[Message, int]:
        """Store a message in the room's current day bucket.

        Every member starts in the undelivered set and every member except
        the sender in the unread set.

        Returns:
            The stored message and the day key of its bucket.
        """
        content_field = _REQUIRED_CONTENT[payload.message_type]
        if getattr(payload, content_field) in (None, ""):
            raise MissingFieldsError([content_field])

        room = self.get_member_room(room_id, sender_id)
        time_sent = as_utc(self.clock())
        day = day_key(time_sent, self.tz)  # type: ignore[arg-type]

        last_bucket = (
            self.db.query(DayBucket)
            .filter(DayBucket.chat_room_id == room.id)
            .order_by(DayBucket.id.desc())
            .first()
        )
        if last_bucket is None or last_bucket.day != day:
            last_bucket = DayBucket(chat_room_id=room.id, day=day)
            self.db.add(last_bucket)
            self.db.flush()

        message = Message(
            day_bucket_id=last_bucket.id,
            chat_room_id=room.id,
            message_type=payload.message_type,
            sender_id=sender_id,
            message=payload.message,
            image_url=payload.image_url,
            call_details=(
                payload.call_details.model_dump(by_alias=True, exclude_none=True)
                if payload.call_details
                else None
            ),
            voice_note_url=payload.voice_note_url,
            voice_note_duration=payload.voice_note_duration,
            time_sent=time_sent,
        )
        message.receipts = [
            MessageReceipt(user_id=member_id, is_recipient=member_id != sender_id)
            for member_id in room.member_ids
        ]
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        self.log.debug(
            "message appended room_id=%s message_id=%s day=%s", room.id, message.id, day
        )
        return message, day

    def get_message(self, room_id: int, day: int, message_id: int) -> Message:
        message = (
            self.db.query(Message)
            .join(DayBucket, Message.day_bucket_id == DayBucket.id)
            .filter(
                Message.id == message_id,
                Message.chat_room_id == room_id,
                DayBucket.day == day,
            )
            .first()
        )
        if message is None:
            raise NotFoundError("Message does not exist")
        return message

    def latest_message(self, room_id: int) -> Message | None:
        return (
            self.db.query(Message)
            .filter(Message.chat_room_id == room_id)
            .order_by(Message.id.desc())
            .first()
        )

    # --- per-user views -------------------------------------------------------------
    def _markers(self, user_id: int, *conditions: Any) -> list[dict[str, int]]:
        rows = (
            self.db.query(DayBucket.day, Message.chat_room_id, Message.id)
            .join(Message, Message.day_bucket_id == DayBucket.id)
            .join(MessageReceipt, MessageReceipt.message_id == Message.id)
            .filter(MessageReceipt.user_id == user_id, *conditions)
            .order_by(Message.id)
            .all()
        )
        return [
            {"day": day, "chatRoomId": chat_room_id, "messageId": message_id}
            for day, chat_room_id, message_id in rows
        ]

    def undelivered_markers(self, user_id: int) -> list[dict[str, int]]:
        return self._markers(user_id, MessageReceipt.delivered.is_(False))

    def unread_markers(self, user_id: int) -> list[dict[str, int]]:
        return self._markers(
            user_id,
            MessageReceipt.is_recipient.is_(True),
            MessageReceipt.read.is_(False),
        )

    def unread_counts(self, user_id: int) -> dict[int, int]:
        rows = (
            self.db.query(Message.chat_room_id, func.count(MessageReceipt.message_id))
            .join(MessageReceipt, MessageReceipt.message_id == Message.id)
            .filter(
                MessageReceipt.user_id == user_id,
                MessageReceipt.is_recipient.is_(True),
                MessageReceipt.read.is_(False),
            )
            .group_by(Message.chat_room_id)
            .all()
        )
        return {room_id: count for room_id, count in rows}

    def pinned_ids(self, user_id: int) -> list[int]:
        rows = (
            self.db.query(PinnedChatRoom.chat_room_id)
            .filter(PinnedChatRoom.user_id == user_id)
            .order_by(PinnedChatRoom.pinned_at, PinnedChatRoom.chat_room_id)
            .all()
        )
        return [room_id for (room_id,) in rows]

    def pin(self, user: User, room_id: int) -> list[int]:
        self.get_member_room(room_id, user.id)
        exists = self.db.get(PinnedChatRoom, (user.id, room_id))
        if exists is None:
            self.db.add(PinnedChatRoom(user_id=user.id, chat_room_id=room_id))
            self.db.commit()
        return self.pinned_ids(user.id)

    def unpin(self, user: User, room_id: int) -> list[int]:
        self.db.execute(
            delete(PinnedChatRoom).where(
                PinnedChatRoom.user_id == user.id,
                PinnedChatRoom.chat_room_id == room_id,
            )
        )
        self.db.commit()
        return self.pinned_ids(user.id)

    def summary(self, user: User) -> list[dict[str, Any]]:
        """Summarise every room of ``user``.

        Pinned rooms come first; each group is ordered by latest message,
        newest first, with rooms that have no messages at the end.
        """
        unread = self.unread_counts(user.id)
        pinned = set(self.pinned_ids(user.id))
        aliases = {contact.contact_user_id: contact.name for contact in user.contacts}

        entries: list[dict[str, Any]] = []
        for room in user.chat_rooms:
            latest = self.latest_message(room.id)
            entry: dict[str, Any] = {
                "chatRoomId": room.id,
                "roomType": room.room_type.value,
                "latestMessage": serialize_message(latest) if latest else {},
                "unreadMessagesCount": unread.get(room.id, 0) if latest else 0,
                "pinned": room.id in pinned,
                "mode": None,
            }
            if room.room_type is RoomType.PRIVATE:
                other = next((m for m in room.members if m.id != user.id), None)
                if other is not None:
                    profile = serialize_user_public(other)
                    profile["name"] = aliases.get(other.id)
                    entry["profile"] = profile
            else:
                entry["name"] = room.name
            entry["_sort"] = as_utc(latest.time_sent) if latest else None
            entries.append(entry)

        ordered = order_summary(entries)
        for entry in ordered:
            entry.pop("_sort", None)
        return ordered


def order_summary(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Return pinned entries then unpinned ones, each newest-first.

    Entries carry their latest-message time under ``_sort`` (``None`` when the
    room is empty).
    """

    def newest_first(group: list[dict[str, Any]]) -> list[dict[str, Any]]:
        with_time = [entry for entry in group if entry["_sort"] is not None]
        without_time = [entry for entry in group if entry["_sort"] is None]
        with_time.sort(key=lambda entry: entry["_sort"], reverse=True)
        return with_time + without_time

    pinned = [entry for entry in entries if entry["pinned"]]
    unpinned = [entry for entry in entries if not entry["pinned"]]
    return newest_first(pinned) + newest_first(unpinned)
