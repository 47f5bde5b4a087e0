"""Profile endpoints for the signed-in user."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from wallet_chat.api.v1.dependencies import CurrentUserDep, SessionDep
from wallet_chat.schemas.user import ProfileUpdateRequest, UserResponse

router = APIRouter(prefix="/profile", tags=["users"])


def _envelope(user: UserResponse) -> dict[str, Any]:
    return {"status": "success", "data": {"user": user.model_dump(by_alias=True, mode="json")}}


@router.get("")
async def get_self_profile(current_user: CurrentUserDep) -> dict[str, Any]:
    return _envelope(UserResponse.model_validate(current_user))


@router.patch("")
async def update_self_profile(
    payload: ProfileUpdateRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Apply partial updates to the editable profile fields."""
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, key, value)
    db.commit()
    db.refresh(current_user)
    return _envelope(UserResponse.model_validate(current_user))
