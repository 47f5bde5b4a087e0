"""Tests for the connection manager fan-out."""

import pytest
from starlette.websockets import WebSocketDisconnect

from wallet_chat.realtime.connections import ConnectionManager, room_channel


class RecordingSocket:
    def __init__(self) -> None:
        self.frames: list[dict] = []

    async def send_json(self, data: dict) -> None:
        self.frames.append(data)


class DeadSocket:
    async def send_json(self, data: dict) -> None:
        raise WebSocketDisconnect(code=1006)


@pytest.mark.asyncio
async def test_emit_skips_dead_socket():
    manager = ConnectionManager()
    dead, live = DeadSocket(), RecordingSocket()
    manager.connect(dead, 1)
    manager.connect(live, 2)
    manager.join_room(dead, 7)
    manager.join_room(live, 7)

    await manager.emit_to_room(7, "user:message", {"text": "hi"})

    assert live.frames == [{"event": "user:message", "data": {"text": "hi"}}]
    assert manager.subscribers(room_channel(7)) == {live}
    assert not manager.is_online(1)
    assert manager.is_online(2)


@pytest.mark.asyncio
async def test_emit_counts_only_delivered_frames():
    manager = ConnectionManager()
    sockets = [DeadSocket(), RecordingSocket(), RecordingSocket()]
    for ws in sockets:
        manager.join_room(ws, 3)

    assert await manager.emit(room_channel(3), "ping", {}) == 2
    assert await manager.emit(room_channel(3), "ping", {}) == 2
