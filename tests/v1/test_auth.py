# tests/v1/test_auth.py
"""Tests for the wallet sign-in endpoints."""

from __future__ import annotations

from fastapi import status
from jose import jwt

from tests.conftest import make_wallet, sign_in_message
from wallet_chat.core.settings import settings
from wallet_chat.models import User


def _issue_nonce(client, address: str | None = None) -> str:
    body = {"address": address} if address else None
    response = client.post("/api/auth/nonce", json=body)
    assert response.status_code == status.HTTP_200_OK
    return response.json()["nonce"]


def _verify_payload(wallet, nonce: str, message: str | None = None) -> dict:
    message = message if message is not None else sign_in_message(nonce)
    return {
        "address": wallet.address,
        "publicKey": wallet.public_key_hex,
        "signature": wallet.sign_hex(message),
        "message": message,
        "nonce": nonce,
    }


def test_nonce_is_issued(client) -> None:
    first = _issue_nonce(client)
    second = _issue_nonce(client, "0xabc")
    assert first != second
    assert len(first) == 32


def test_verify_creates_user_and_sets_cookie(client, db_session) -> None:
    wallet = make_wallet()
    nonce = _issue_nonce(client, wallet.address)

    response = client.post("/api/auth/verify", json=_verify_payload(wallet, nonce))

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["ok"] is True
    assert settings.session_cookie_name in response.cookies

    user = db_session.get(User, data["userId"])
    assert user is not None
    assert user.wallet_address == wallet.address.lower()
    assert user.username == wallet.address.lower()
    assert user.public_key == wallet.public_key_hex

    claims = jwt.decode(data["accessToken"], settings.secret_key, algorithms=[settings.jwt_algorithm])
    assert claims["sub"] == str(user.id)
    assert claims["addr"] == wallet.address.lower()
    assert claims["pk"] == wallet.public_key_hex


def test_verify_reuses_existing_user(client, db_session) -> None:
    wallet = make_wallet()
    first = client.post("/api/auth/verify", json=_verify_payload(wallet, _issue_nonce(client)))
    second = client.post("/api/auth/verify", json=_verify_payload(wallet, _issue_nonce(client)))

    assert first.json()["userId"] == second.json()["userId"]
    assert db_session.query(User).count() == 1


def test_sign_in_scenario_with_unbound_nonce(client) -> None:
    wallet = make_wallet()
    wallet.address = "0xabc"
    nonce = _issue_nonce(client)
    message = f"Sign in\nNonce: {nonce}"

    response = client.post("/api/auth/verify", json=_verify_payload(wallet, nonce, message))

    assert response.status_code == status.HTTP_200_OK
    me = client.get("/api/me")
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["user"]["aptosAddress"] == "0xabc"


def test_full_message_takes_precedence(client) -> None:
    wallet = make_wallet()
    nonce = _issue_nonce(client)
    full_message = f"APTOS\nmessage: hello\nnonce: {nonce}"
    payload = _verify_payload(wallet, nonce, "hello")
    payload["fullMessage"] = full_message
    payload["signature"] = wallet.sign_hex(full_message)

    response = client.post("/api/auth/verify", json=payload)
    assert response.status_code == status.HTTP_200_OK


def test_replayed_nonce_is_rejected(client) -> None:
    wallet = make_wallet()
    nonce = _issue_nonce(client, wallet.address)
    payload = _verify_payload(wallet, nonce)

    assert client.post("/api/auth/verify", json=payload).status_code == status.HTTP_200_OK
    replay = client.post("/api/auth/verify", json=payload)

    assert replay.status_code == status.HTTP_401_UNAUTHORIZED
    assert replay.json()["error"] == "NonceInvalid"


def test_unknown_nonce_is_rejected(client) -> None:
    wallet = make_wallet()
    response = client.post("/api/auth/verify", json=_verify_payload(wallet, "deadbeef"))
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "NonceInvalid"


def test_missing_fields(client) -> None:
    response = client.post("/api/auth/verify", json={"address": "0xabc", "nonce": "n"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["error"] == "MissingFields"
    assert "publicKey" in body["detail"]
    assert "signature" in body["detail"]


def test_bad_signature_burns_the_nonce(client, db_session) -> None:
    wallet = make_wallet()
    impostor = make_wallet()
    nonce = _issue_nonce(client, wallet.address)
    payload = _verify_payload(wallet, nonce)
    payload["signature"] = impostor.sign_hex(payload["message"])

    response = client.post("/api/auth/verify", json=payload)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "BadSignature"
    assert db_session.query(User).count() == 0

    retry = client.post("/api/auth/verify", json=_verify_payload(wallet, nonce))
    assert retry.json()["error"] == "NonceInvalid"


def test_signature_over_message_without_nonce(client) -> None:
    wallet = make_wallet()
    nonce = _issue_nonce(client)
    response = client.post(
        "/api/auth/verify", json=_verify_payload(wallet, nonce, "Sign in please")
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "BadSignature"


def test_public_key_rotation(client, db_session) -> None:
    wallet = make_wallet()
    client.post("/api/auth/verify", json=_verify_payload(wallet, _issue_nonce(client)))

    rotated = make_wallet()
    rotated.address = wallet.address
    response = client.post("/api/auth/verify", json=_verify_payload(rotated, _issue_nonce(client)))

    assert response.status_code == status.HTTP_200_OK
    user = db_session.get(User, response.json()["userId"])
    db_session.refresh(user)
    assert user.public_key == rotated.public_key_hex


def test_logout_clears_cookie(client, alice_headers) -> None:
    response = client.post("/api/auth/logout", headers=alice_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"ok": True}
    assert 'auth_token=""' in response.headers.get("set-cookie", "")


def test_logout_requires_session(client) -> None:
    response = client.post("/api/auth/logout")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "Unauthenticated"


def test_nonce_bound_by_someone_else_does_not_block_sign_in(client) -> None:
    wallet = make_wallet()
    nonce = _issue_nonce(client)
    # A third party binds its own nonce to the wallet's address.
    _issue_nonce(client, wallet.address)

    response = client.post("/api/auth/verify", json=_verify_payload(wallet, nonce))

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["ok"] is True
