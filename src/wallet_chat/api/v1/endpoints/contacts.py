"""Contact list endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response, status

from wallet_chat.api.v1.dependencies import CurrentUserDep, SessionDep
from wallet_chat.schemas.contact import ContactCreate, ContactDelete
from wallet_chat.services import contacts as contact_service

router = APIRouter(prefix="/contacts", tags=["contacts"])


@router.get("")
async def get_all_contacts(current_user: CurrentUserDep) -> dict[str, Any]:
    return {
        "status": "success",
        "data": {"contacts": contact_service.list_contacts(current_user)},
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_new_contact(
    payload: ContactCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Add a contact, opening a private chat room with them if needed."""
    contact = contact_service.add_contact(db, current_user, payload.name, payload.username)
    return {"status": "success", "data": {"contact": contact}}


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(
    payload: ContactDelete,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    contact_service.delete_contact(db, current_user, payload.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
