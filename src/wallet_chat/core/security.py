"""Session token helpers built on signed JWTs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from wallet_chat.core.errors import InvalidTokenError, UnauthenticatedError
from wallet_chat.core.settings import settings


@dataclass(frozen=True)
class SessionClaims:
    """Identity carried by a session token."""

    subject_id: int
    address: str | None
    public_key: str | None
    expires_at: datetime


def create_access_token(
    subject_id: int,
    address: str | None = None,
    public_key: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed session token embedding `{sub, addr, pk}`."""
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode: dict[str, Any] = {
        "sub": str(subject_id),
        "iat": int(now.timestamp()),
        "exp": expire,
    }
    if address is not None:
        to_encode["addr"] = address
    if public_key is not None:
        to_encode["pk"] = public_key
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str | None) -> SessionClaims:
    """Validate a session token and return its claims.

    Raises:
        UnauthenticatedError: If no token was presented.
        InvalidTokenError: If the token is malformed, forged or expired.
    """
    if not token:
        raise UnauthenticatedError()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise InvalidTokenError() from err

    subject = payload.get("sub")
    try:
        subject_id = int(subject)
    except (TypeError, ValueError) as err:
        raise InvalidTokenError() from err

    return SessionClaims(
        subject_id=subject_id,
        address=payload.get("addr"),
        public_key=payload.get("pk"),
        expires_at=datetime.fromtimestamp(payload["exp"], UTC),
    )


def extract_bearer(authorization: str | None) -> str | None:
    """Return the token portion of an ``Authorization: Bearer`` header."""
    if not authorization:
        return None
    scheme, _, credentials = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return credentials.strip() or None


def token_from_request_parts(
    authorization: str | None,
    cookies: dict[str, str],
) -> str | None:
    """Pick the session token from a bearer header, falling back to the cookie."""
    return extract_bearer(authorization) or cookies.get(settings.session_cookie_name) or None
