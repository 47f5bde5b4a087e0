"""Wallet sign-in endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from wallet_chat.api.v1.dependencies import CurrentUserDep, NonceRegistryDep, SessionDep
from wallet_chat.core.settings import settings
from wallet_chat.schemas.auth import NonceRequest, NonceResponse, VerifyRequest, VerifyResponse
from wallet_chat.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["authentication"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        samesite=settings.session_cookie_samesite,
        secure=settings.session_cookie_secure,
        max_age=settings.session_max_age_seconds,
        path="/",
    )


@router.post(
    "/nonce",
    summary="Issue a single-use sign-in nonce",
    response_model=NonceResponse,
)
async def issue_nonce(
    db: SessionDep,
    registry: NonceRegistryDep,
    payload: NonceRequest | None = None,
) -> NonceResponse:
    """Return a nonce the wallet must include in the message it signs."""
    address = payload.address if payload else None
    nonce = AuthService(db, registry).issue_nonce(address)
    return NonceResponse(nonce=nonce)


@router.post(
    "/verify",
    summary="Verify a signed nonce and start a session",
    response_model=VerifyResponse,
    response_model_by_alias=True,
)
async def verify(
    payload: VerifyRequest,
    response: Response,
    db: SessionDep,
    registry: NonceRegistryDep,
) -> VerifyResponse:
    """Check the wallet signature, upsert the user and set the session cookie."""
    result = AuthService(db, registry).verify(payload)
    _set_session_cookie(response, result.access_token)
    return VerifyResponse(ok=True, user_id=result.user.id, access_token=result.access_token)


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(response: Response, current_user: CurrentUserDep) -> dict[str, bool]:
    """Tell the client to discard its session; tokens are not revoked server-side."""
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        samesite=settings.session_cookie_samesite,
        secure=settings.session_cookie_secure,
    )
    return {"ok": True}
