"""Chat room endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response, status

from wallet_chat.api.v1.dependencies import CurrentUserDep, SessionDep
from wallet_chat.schemas.chat_room import GroupCreate
from wallet_chat.services.chat_rooms import ChatRoomStore, serialize_chat_room

router = APIRouter(prefix="/chatRoom", tags=["chat rooms"])


@router.get("/summary")
async def get_chat_room_summary(current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """List the user's rooms, pinned first, newest activity first."""
    summary = ChatRoomStore(db).summary(current_user)
    return {"status": "success", "data": {"chatRoomSummary": summary}}


@router.post("/create-group", status_code=status.HTTP_201_CREATED)
async def create_group_chat(
    payload: GroupCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, Any]:
    room = ChatRoomStore(db).create_group(current_user, payload.name, payload.members)
    return {"status": "success", "data": {"chatRoom": serialize_chat_room(room)}}


@router.get("/{chat_room_id}")
async def get_chat_room(
    chat_room_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, Any]:
    room = ChatRoomStore(db).get_member_room(chat_room_id, current_user.id)
    return {"status": "success", "data": {"chatRoom": serialize_chat_room(room)}}


@router.post("/{chat_room_id}")
async def pin_chat_room(
    chat_room_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, Any]:
    pinned = ChatRoomStore(db).pin(current_user, chat_room_id)
    return {"status": "success", "data": {"pinnedChatRooms": pinned}}


@router.patch("/{chat_room_id}")
async def unpin_chat_room(
    chat_room_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, Any]:
    pinned = ChatRoomStore(db).unpin(current_user, chat_room_id)
    return {"status": "success", "data": {"pinnedChatRooms": pinned}}


@router.delete("/{chat_room_id}/messages", status_code=status.HTTP_204_NO_CONTENT)
async def clear_chat_room(
    chat_room_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    """Empty the room's history for every member."""
    store = ChatRoomStore(db)
    store.get_member_room(chat_room_id, current_user.id)
    store.clear_chat_room(chat_room_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
