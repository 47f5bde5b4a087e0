# tests/test_health.py
from typing import Any

from sqlalchemy.exc import OperationalError

from wallet_chat.services.chat_rooms import ChatRoomStore


def test_health(client: Any) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_root_responds(client: Any) -> None:
    """Verify that the root endpoint reports the service name."""
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["name"] == "Wallet Chat"


def test_store_errors_are_generic(client: Any, alice_headers: dict[str, str], monkeypatch: Any) -> None:
    def _boom(self, user):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(ChatRoomStore, "summary", _boom)
    r = client.get("/api/chatRoom/summary", headers=alice_headers)
    assert r.status_code == 500
    assert r.json() == {"detail": "Server error", "error": "ServerError"}
