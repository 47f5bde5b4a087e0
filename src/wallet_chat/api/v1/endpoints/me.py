"""Who-am-I endpoint used by the client's auth gate."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from wallet_chat.api.v1.dependencies import CurrentUserDep
from wallet_chat.schemas.user import UserResponse

router = APIRouter(prefix="/me", tags=["users"])


@router.get("")
async def read_me(current_user: CurrentUserDep) -> dict[str, Any]:
    """Return the signed-in user's record."""
    user = UserResponse.model_validate(current_user)
    return {"user": user.model_dump(by_alias=True, mode="json")}
