"""Websocket gateway for message fan-out and receipts.

Frames are JSON objects ``{"event": str, "data": dict, "ack": id?}``. When a
client frame carries an ``ack`` id the server answers with
``{"event": "ack", "ack": id, "data": result}``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wallet_chat.api.v1.dependencies import (
    ConnectionManagerDep,
    SessionDep,
    get_session_claims,
    load_session_user,
)
from wallet_chat.core.errors import ChatError, ServerError
from wallet_chat.models import User
from wallet_chat.realtime.connections import ConnectionManager, room_channel
from wallet_chat.schemas.chat_room import JoinRoomEvent, ReceiptAck, SendMessageEvent
from wallet_chat.services.chat_rooms import ChatRoomStore, serialize_message
from wallet_chat.services.delivery import DeliveryTracker

# Application-defined close code mirroring HTTP 401.
WS_UNAUTHORIZED = 4401

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)

Handler = Callable[["GatewaySession", dict[str, Any]], Awaitable[dict[str, Any]]]


class GatewaySession:
    """Per-connection event dispatcher."""

    def __init__(
        self,
        ws: WebSocket,
        user: User,
        db: Session,
        manager: ConnectionManager,
    ) -> None:
        self.ws = ws
        self.user = user
        self.db = db
        self.manager = manager
        self.store = ChatRoomStore(db)
        self.tracker = DeliveryTracker(db, manager, store=self.store)

    async def open(self) -> None:
        self.manager.connect(self.ws, self.user.id)
        for room_id in self.user.chat_room_ids:
            self.manager.join_room(self.ws, room_id)
        await self.ws.send_json(
            {
                "event": "user:undeliveredMessages",
                "data": {"messages": self.store.undelivered_markers(self.user.id)},
            }
        )

    async def join_room(self, data: dict[str, Any]) -> dict[str, Any]:
        event = JoinRoomEvent.model_validate(data)
        self.store.get_member_room(event.chat_room_id, self.user.id)
        self.manager.join_room(self.ws, event.chat_room_id)
        return {"ok": True, "chatRoomId": event.chat_room_id}

    async def send_message(self, data: dict[str, Any]) -> dict[str, Any]:
        event = SendMessageEvent.model_validate(data)
        message, day = self.store.append_message(event.chat_room_id, self.user.id, event)
        room = self.store.get_chat_room(event.chat_room_id)
        for member_id in room.member_ids:
            self.manager.join_user_to_room(member_id, room.id)

        # The sender's own client already holds the message.
        await self.tracker.mark_delivered(room.id, day, message.id, [self.user.id])
        self.db.refresh(message)
        payload = {"chatRoomId": room.id, "day": day, "message": serialize_message(message)}
        await self.manager.emit(room_channel(room.id), "user:message", payload)
        return {"ok": True, **payload}

    async def mark_delivered(self, data: dict[str, Any]) -> dict[str, Any]:
        ack = ReceiptAck.model_validate(data)
        self.store.get_member_room(ack.chat_room_id, self.user.id)
        results = []
        for message_id in ack.all_message_ids:
            outcome = await self.tracker.mark_delivered(
                ack.chat_room_id, ack.day, message_id, [self.user.id]
            )
            results.append({"messageId": message_id, "delivered": outcome.completed})
        return {"ok": True, "results": results}

    async def mark_read(self, data: dict[str, Any]) -> dict[str, Any]:
        ack = ReceiptAck.model_validate(data)
        self.store.get_member_room(ack.chat_room_id, self.user.id)
        results = []
        for message_id in ack.all_message_ids:
            outcome = await self.tracker.mark_read(
                ack.chat_room_id, ack.day, message_id, self.user.id
            )
            results.append({"messageId": message_id, "read": outcome.completed})
        return {"ok": True, "results": results}

    async def dispatch(self, frame: Any) -> dict[str, Any]:
        if not isinstance(frame, dict):
            return {"ok": False, "error": "BadFrame", "detail": "Frames must be JSON objects"}
        handler = HANDLERS.get(str(frame.get("event")))
        if handler is None:
            return {"ok": False, "error": "UnknownEvent", "detail": str(frame.get("event"))}
        data = frame.get("data") or {}
        try:
            return await handler(self, data)
        except ValidationError as err:
            return {"ok": False, "error": "MissingFields", "detail": str(err)}
        except ChatError as err:
            self.db.rollback()
            return {"ok": False, "error": err.kind, "detail": err.detail}
        except SQLAlchemyError:
            logger.exception("store failure handling %s for user_id=%s", frame.get("event"), self.user.id)
            self.db.rollback()
            err = ServerError()
            return {"ok": False, "error": err.kind, "detail": err.detail}


HANDLERS: dict[str, Handler] = {
    "chatRoom:join": GatewaySession.join_room,
    "message:send": GatewaySession.send_message,
    "message:delivered": GatewaySession.mark_delivered,
    "message:read": GatewaySession.mark_read,
}


@router.websocket("/ws")
async def realtime(ws: WebSocket, db: SessionDep, manager: ConnectionManagerDep) -> None:
    """Authenticate the socket, then serve events until it disconnects."""
    try:
        claims = get_session_claims(ws)
        user = load_session_user(db, claims)
    except ChatError as err:
        logger.info("websocket rejected reason=%s", err.kind)
        # Accept first so the close code and reason reach the client.
        await ws.accept()
        await ws.close(code=WS_UNAUTHORIZED, reason=err.detail)
        return

    await ws.accept()
    session = GatewaySession(ws, user, db, manager)
    await session.open()
    logger.info("websocket connected user_id=%s", user.id)

    try:
        while True:
            raw = await ws.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                frame = None
            result = await session.dispatch(frame)
            ack_id = frame.get("ack") if isinstance(frame, dict) else None
            if ack_id is not None:
                await ws.send_json({"event": "ack", "ack": ack_id, "data": result})
            elif not result.get("ok", False):
                await ws.send_json({"event": "error", "data": result})
    except WebSocketDisconnect:
        logger.info("websocket disconnected user_id=%s", user.id)
    finally:
        manager.disconnect(ws)


__all__ = ["router", "GatewaySession", "WS_UNAUTHORIZED"]
