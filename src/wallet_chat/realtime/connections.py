"""Live websocket connections and the channels they listen on."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


def user_channel(user_id: int) -> str:
    return f"user:{user_id}"


def room_channel(room_id: int) -> str:
    return f"room:{room_id}"


class ConnectionManager:
    """Tracks which user owns each socket and which channels it joined.

    This is the only state the realtime gateway keeps; it is lost on restart.
    """

    def __init__(self) -> None:
        self._users: dict[WebSocket, int] = {}
        self._channels: dict[str, set[WebSocket]] = defaultdict(set)
        self._memberships: dict[WebSocket, set[str]] = defaultdict(set)

    def connect(self, ws: WebSocket, user_id: int) -> None:
        self._users[ws] = user_id
        self.join(ws, user_channel(user_id))

    def disconnect(self, ws: WebSocket) -> None:
        for channel in self._memberships.pop(ws, set()):
            sockets = self._channels.get(channel)
            if sockets is None:
                continue
            sockets.discard(ws)
            if not sockets:
                del self._channels[channel]
        user_id = self._users.pop(ws, None)
        if user_id is not None:
            logger.debug("socket closed user_id=%s online=%s", user_id, self.is_online(user_id))

    def join(self, ws: WebSocket, channel: str) -> None:
        self._channels[channel].add(ws)
        self._memberships[ws].add(channel)

    def join_room(self, ws: WebSocket, room_id: int) -> None:
        self.join(ws, room_channel(room_id))

    def join_user_to_room(self, user_id: int, room_id: int) -> None:
        """Subscribe every live socket of ``user_id`` to a room channel."""
        for ws in list(self._channels.get(user_channel(user_id), ())):
            self.join_room(ws, room_id)

    def is_online(self, user_id: int) -> bool:
        return bool(self._channels.get(user_channel(user_id)))

    def subscribers(self, channel: str) -> set[WebSocket]:
        return set(self._channels.get(channel, ()))

    async def emit(self, channel: str, event: str, data: dict[str, Any]) -> int:
        """Send an event to every socket on ``channel``; returns how many got it."""
        sent = 0
        for ws in self.subscribers(channel):
            try:
                await ws.send_json({"event": event, "data": data})
                sent += 1
            except (WebSocketDisconnect, RuntimeError, OSError) as err:
                logger.warning("dropping dead socket on %s: %s", channel, err)
                self.disconnect(ws)
        return sent

    async def emit_to_room(self, room_id: int, event: str, payload: dict[str, Any]) -> None:
        await self.emit(room_channel(room_id), event, payload)
