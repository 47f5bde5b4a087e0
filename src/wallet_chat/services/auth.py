"""Wallet sign-in handshake.

``Start`` (nonce issued) -> ``Verifying`` -> ``Authenticated`` | ``Rejected``.
Nothing is written to the database until every check has passed.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from wallet_chat.core.errors import (
    BadSignatureError,
    ChatError,
    MissingFieldsError,
    NonceInvalidError,
)
from wallet_chat.core.logging import short_address
from wallet_chat.core.security import create_access_token
from wallet_chat.models import User
from wallet_chat.schemas.auth import VerifyRequest
from wallet_chat.services import signature
from wallet_chat.services.nonce import NonceRegistry

_REQUIRED_FIELDS = ("address", "publicKey", "signature", "message", "nonce")


class HandshakeState(str, enum.Enum):
    START = "start"
    NONCE_ISSUED = "nonce_issued"
    VERIFYING = "verifying"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful verification."""

    user: User
    access_token: str
    created: bool
    state: HandshakeState = HandshakeState.AUTHENTICATED


def normalize_address(address: str) -> str:
    return address.strip().lower()


def _missing_fields(payload: VerifyRequest) -> list[str]:
    present = {
        "address": payload.address,
        "publicKey": payload.public_key,
        "signature": payload.signature,
        "message": payload.signed_message,
        "nonce": payload.nonce,
    }
    return [name for name in _REQUIRED_FIELDS if present[name] in (None, "", [])]


class AuthService:
    """Runs the nonce -> signature -> user upsert -> token sequence."""

    def __init__(
        self,
        db: Session,
        nonce_registry: NonceRegistry,
        logger: logging.Logger | None = None,
    ) -> None:
        self.db = db
        self.nonces = nonce_registry
        self.log = logger or logging.getLogger(__name__)

    def issue_nonce(self, address: str | None = None) -> str:
        nonce = self.nonces.issue(normalize_address(address) if address else None)
        self.log.info(
            "auth state=%s address=%s",
            HandshakeState.NONCE_ISSUED.value,
            short_address(address),
        )
        return nonce

    def verify(self, payload: VerifyRequest) -> AuthResult:
        """Verify a signed challenge and return the signed-in user with a token.

        Raises:
            MissingFieldsError: A required field was absent.
            NonceInvalidError: The nonce is unknown, mismatched, expired or used.
            BadSignatureError: The signature does not cover the message.
        """
        try:
            result = self._verify(payload)
        except ChatError as err:
            self.log.info(
                "auth state=%s address=%s reason=%s",
                HandshakeState.REJECTED.value,
                short_address(payload.address),
                err.kind,
            )
            raise
        self.log.info(
            "auth state=%s address=%s user_id=%s created=%s",
            result.state.value,
            short_address(payload.address),
            result.user.id,
            result.created,
        )
        return result

    def _verify(self, payload: VerifyRequest) -> AuthResult:
        missing = _missing_fields(payload)
        if missing:
            raise MissingFieldsError(missing)

        address = normalize_address(payload.address or "")
        message = payload.signed_message or ""
        nonce = payload.nonce or ""

        if not self.nonces.consume(address, nonce):
            raise NonceInvalidError()

        # The wallet's full message embeds the nonce; a signature over some
        # other text must not be accepted alongside a fresh nonce.
        if nonce not in message:
            raise BadSignatureError("Signed message does not contain the nonce")

        if not signature.verify(payload.public_key, payload.signature, message):
            raise BadSignatureError()

        public_key = signature.normalize_public_key(payload.public_key)
        user, created = self._upsert_user(address, public_key)
        self.db.commit()
        self.db.refresh(user)

        token = create_access_token(user.id, address=address, public_key=public_key)
        return AuthResult(user=user, access_token=token, created=created)

    def _upsert_user(self, address: str, public_key: str | None) -> tuple[User, bool]:
        user = self.db.query(User).filter(User.wallet_address == address).first()
        if user is None:
            user = User(
                username=address,
                wallet_address=address,
                public_key=public_key,
            )
            self.db.add(user)
            return user, True

        if public_key and user.public_key != public_key:
            self.log.info("auth rotating public key for user_id=%s", user.id)
            user.public_key = public_key
        return user, False
