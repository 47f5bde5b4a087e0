"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session
from starlette.requests import HTTPConnection

from wallet_chat.core.errors import InvalidTokenError
from wallet_chat.core.security import (
    SessionClaims,
    decode_access_token,
    token_from_request_parts,
)
from wallet_chat.db.session import get_db
from wallet_chat.models import User
from wallet_chat.realtime.connections import ConnectionManager
from wallet_chat.services.nonce import NonceRegistry

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_nonce_registry(conn: HTTPConnection) -> NonceRegistry:
    """Return the registry built for this application instance."""
    registry: NonceRegistry = conn.app.state.nonce_registry
    return registry


def get_connection_manager(conn: HTTPConnection) -> ConnectionManager:
    manager: ConnectionManager = conn.app.state.connections
    return manager


def get_session_claims(conn: HTTPConnection) -> SessionClaims:
    """Decode the session token from the bearer header or the session cookie.

    Raises:
        UnauthenticatedError: If no token was presented.
        InvalidTokenError: If the token does not validate.
    """
    token = token_from_request_parts(conn.headers.get("authorization"), dict(conn.cookies))
    return decode_access_token(token)


def load_session_user(db: Session, claims: SessionClaims) -> User:
    user = db.get(User, claims.subject_id)
    if user is None:
        raise InvalidTokenError("User not found")
    return user


def get_current_user(
    claims: Annotated[SessionClaims, Depends(get_session_claims)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from the session token."""
    return load_session_user(db, claims)


NonceRegistryDep = Annotated[NonceRegistry, Depends(get_nonce_registry)]
ConnectionManagerDep = Annotated[ConnectionManager, Depends(get_connection_manager)]
# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
