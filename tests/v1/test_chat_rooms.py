# tests/v1/test_chat_rooms.py
"""Tests for chat room endpoints."""

import pytest
from fastapi import status

from tests.conftest import auth_headers
from wallet_chat.models import RoomType
from wallet_chat.schemas.chat_room import MessageCreate
from wallet_chat.services.chat_rooms import ChatRoomStore


@pytest.fixture()
def room(db_session, alice, bob):
    store = ChatRoomStore(db_session)
    room = store.create_chat_room(RoomType.PRIVATE, [alice.id, bob.id])
    db_session.commit()
    return room


def test_get_chat_room(client, db_session, room, alice, bob, alice_headers):
    ChatRoomStore(db_session).append_message(room.id, bob.id, MessageCreate(message="gm"))

    response = client.get(f"/api/chatRoom/{room.id}", headers=alice_headers)

    assert response.status_code == status.HTTP_200_OK
    chat_room = response.json()["data"]["chatRoom"]
    assert chat_room["roomType"] == "Private"
    assert [member["username"] for member in chat_room["members"]] == ["alice", "bob"]
    [bucket] = chat_room["messageHistory"]
    [message] = bucket["messages"]
    assert message["message"] == "gm"
    assert message["sender"] == bob.id
    assert message["unreadMembers"] == [alice.id]
    assert sorted(message["undeliveredMembers"]) == sorted([alice.id, bob.id])


def test_get_chat_room_requires_membership(client, room, carol):
    response = client.get(f"/api/chatRoom/{room.id}", headers=auth_headers(carol))
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Chat does not exist"


def test_summary(client, db_session, room, alice, bob, alice_headers):
    ChatRoomStore(db_session).append_message(room.id, bob.id, MessageCreate(message="gm"))

    response = client.get("/api/chatRoom/summary", headers=alice_headers)

    assert response.status_code == status.HTTP_200_OK
    [entry] = response.json()["data"]["chatRoomSummary"]
    assert entry["chatRoomId"] == room.id
    assert entry["unreadMessagesCount"] == 1
    assert entry["latestMessage"]["message"] == "gm"
    assert entry["profile"]["username"] == "bob"
    assert entry["pinned"] is False


def test_pin_and_unpin(client, room, alice_headers):
    pinned = client.post(f"/api/chatRoom/{room.id}", headers=alice_headers)
    assert pinned.status_code == status.HTTP_200_OK
    assert pinned.json()["data"]["pinnedChatRooms"] == [room.id]

    summary = client.get("/api/chatRoom/summary", headers=alice_headers).json()
    assert summary["data"]["chatRoomSummary"][0]["pinned"] is True

    unpinned = client.patch(f"/api/chatRoom/{room.id}", headers=alice_headers)
    assert unpinned.json()["data"]["pinnedChatRooms"] == []


def test_create_group(client, alice, bob, carol, alice_headers):
    response = client.post(
        "/api/chatRoom/create-group",
        headers=alice_headers,
        json={"name": "trio", "members": ["bob", "carol"]},
    )
    assert response.status_code == status.HTTP_201_CREATED
    chat_room = response.json()["data"]["chatRoom"]
    assert chat_room["roomType"] == "Group"
    assert chat_room["name"] == "trio"
    assert len(chat_room["members"]) == 3


def test_create_group_with_unknown_member(client, alice, alice_headers):
    response = client.post(
        "/api/chatRoom/create-group",
        headers=alice_headers,
        json={"name": "ghosts", "members": ["nobody"]},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_clear_chat_room(client, db_session, room, alice, bob, alice_headers):
    store = ChatRoomStore(db_session)
    store.append_message(room.id, bob.id, MessageCreate(message="gm"))

    response = client.delete(f"/api/chatRoom/{room.id}/messages", headers=alice_headers)

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert store.unread_markers(alice.id) == []
    chat_room = client.get(f"/api/chatRoom/{room.id}", headers=alice_headers).json()
    assert chat_room["data"]["chatRoom"]["messageHistory"] == []
