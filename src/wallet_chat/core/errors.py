"""Domain errors raised by services and rendered by the API layer.

Each error carries the HTTP status it maps to and a short machine-readable
``kind``; handlers and the realtime gateway report the kind verbatim so
clients can tell a stale nonce apart from a bad signature.
"""

from __future__ import annotations

from fastapi import status


class ChatError(Exception):
    """Base class for all expected, client-visible failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    kind: str = "ChatError"
    default_detail: str = "Request could not be processed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, str]:
        return {"detail": self.detail, "error": self.kind}


class MissingFieldsError(ChatError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "MissingFields"
    default_detail = "Missing fields"

    def __init__(self, fields: list[str] | None = None) -> None:
        self.fields = list(fields or [])
        detail = self.default_detail
        if self.fields:
            detail = f"Missing fields: {', '.join(self.fields)}"
        super().__init__(detail)


class NonceInvalidError(ChatError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "NonceInvalid"
    default_detail = "Nonce is invalid, expired or already used"


class BadSignatureError(ChatError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "BadSignature"
    default_detail = "Bad signature"


class UnauthenticatedError(ChatError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "Unauthenticated"
    default_detail = "Unauthenticated"


class InvalidTokenError(ChatError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "InvalidToken"
    default_detail = "Invalid token"


class NotFoundError(ChatError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "NotFound"
    default_detail = "Resource not found"


class ConflictError(ChatError):
    status_code = status.HTTP_409_CONFLICT
    kind = "Conflict"
    default_detail = "Conflicting request"


class ServerError(ChatError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "ServerError"
    default_detail = "Server error"
