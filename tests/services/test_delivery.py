"""Tests for delivery and read receipt tracking."""

from typing import Any

import pytest

from wallet_chat.core.errors import NotFoundError
from wallet_chat.models import Message, RoomType
from wallet_chat.schemas.chat_room import MessageCreate
from wallet_chat.services.chat_rooms import ChatRoomStore
from wallet_chat.services.delivery import (
    MESSAGE_DELIVERED_EVENT,
    MESSAGE_READ_EVENT,
    DeliveryTracker,
)


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: list[tuple[int, str, dict[str, Any]]] = []

    async def emit_to_room(self, room_id: int, event: str, payload: dict[str, Any]) -> None:
        self.events.append((room_id, event, payload))

    def named(self, event: str) -> list[dict[str, Any]]:
        return [payload for _, name, payload in self.events if name == event]


@pytest.fixture()
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture()
def store(db_session) -> ChatRoomStore:
    return ChatRoomStore(db_session)


@pytest.fixture()
def tracker(db_session, publisher, store) -> DeliveryTracker:
    return DeliveryTracker(db_session, publisher, store=store)


@pytest.fixture()
def group(store, alice, bob, carol):
    return store.create_group(alice, "trio", ["bob", "carol"])


def _send(store, room, sender, body="hello"):
    return store.append_message(room.id, sender.id, MessageCreate(message=body))


@pytest.mark.asyncio
async def test_private_room_scenario(store, tracker, publisher, db_session, alice, bob):
    room = store.create_chat_room(RoomType.PRIVATE, [alice.id, bob.id])
    db_session.commit()
    message, day = _send(store, room, alice)

    # The sender's client already holds the message.
    outcome = await tracker.mark_delivered(room.id, day, message.id, [alice.id])
    assert outcome.remaining == [bob.id]
    assert outcome.completed is False
    assert publisher.events == []

    outcome = await tracker.mark_delivered(room.id, day, message.id, [bob.id])
    assert outcome.completed is True
    assert outcome.emitted is True
    assert publisher.named(MESSAGE_DELIVERED_EVENT) == [
        {"messageId": message.id, "senderId": alice.id, "chatRoomId": room.id, "day": day}
    ]
    assert store.undelivered_markers(bob.id) == []

    outcome = await tracker.mark_read(room.id, day, message.id, bob.id)
    assert outcome.completed is True
    assert len(publisher.named(MESSAGE_READ_EVENT)) == 1

    stored = db_session.get(Message, message.id)
    assert stored.delivered_status is True
    assert stored.read_status is True
    assert stored.undelivered_members == []
    assert stored.unread_members == []
    assert store.unread_markers(bob.id) == []


@pytest.mark.asyncio
async def test_overlapping_acks_converge(store, tracker, publisher, group, alice, bob, carol):
    message, day = _send(store, group, alice)

    await tracker.mark_delivered(group.id, day, message.id, [alice.id, bob.id])
    await tracker.mark_delivered(group.id, day, message.id, [bob.id])
    outcome = await tracker.mark_delivered(group.id, day, message.id, [bob.id, carol.id])

    assert outcome.remaining == []
    assert len(publisher.named(MESSAGE_DELIVERED_EVENT)) == 1


@pytest.mark.asyncio
async def test_completion_event_is_emitted_once(store, tracker, publisher, group, alice, bob, carol):
    message, day = _send(store, group, alice)
    members = [alice.id, bob.id, carol.id]

    first = await tracker.mark_delivered(group.id, day, message.id, members)
    retry = await tracker.mark_delivered(group.id, day, message.id, members)

    assert first.emitted is True
    assert retry.completed is True
    assert retry.emitted is False
    assert len(publisher.named(MESSAGE_DELIVERED_EVENT)) == 1


@pytest.mark.asyncio
async def test_read_by_all_waits_for_every_recipient(
    store, tracker, publisher, group, alice, bob, carol
):
    message, day = _send(store, group, alice)

    outcome = await tracker.mark_read(group.id, day, message.id, bob.id)
    assert outcome.remaining == [carol.id]
    assert publisher.named(MESSAGE_READ_EVENT) == []

    # Repeating a read ack changes nothing.
    outcome = await tracker.mark_read(group.id, day, message.id, bob.id)
    assert outcome.remaining == [carol.id]

    outcome = await tracker.mark_read(group.id, day, message.id, carol.id)
    assert outcome.emitted is True
    again = await tracker.mark_read(group.id, day, message.id, carol.id)
    assert again.emitted is False
    assert len(publisher.named(MESSAGE_READ_EVENT)) == 1


@pytest.mark.asyncio
async def test_sender_read_ack_is_ignored(store, tracker, publisher, group, alice):
    message, day = _send(store, group, alice)
    outcome = await tracker.mark_read(group.id, day, message.id, alice.id)
    assert len(outcome.remaining) == 2
    assert publisher.events == []


@pytest.mark.asyncio
async def test_unknown_message(tracker, group):
    with pytest.raises(NotFoundError):
        await tracker.mark_delivered(group.id, 0, 123456, [1])
