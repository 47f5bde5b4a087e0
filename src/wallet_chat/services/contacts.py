"""Contact list management.

Adding a contact opens (or reuses) the private chat room shared by the two
users. The room is deleted again once neither side lists the other.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from wallet_chat.core.errors import ConflictError, MissingFieldsError, NotFoundError
from wallet_chat.models import ChatRoom, Contact, RoomType, User
from wallet_chat.services.chat_rooms import ChatRoomStore, serialize_user_public

logger = logging.getLogger(__name__)


def serialize_contact(contact: Contact) -> dict[str, Any]:
    return {
        "name": contact.name,
        "contactDetails": serialize_user_public(contact.contact_details),
        "chatRoomId": contact.chat_room_id,
    }


def _find_contact(owner: User, other_id: int) -> Contact | None:
    return next((c for c in owner.contacts if c.contact_user_id == other_id), None)


def shared_chat_room_id(db: Session, user: User, other: User) -> int | None:
    """Return the private room ``other`` already keeps for ``user``, if any."""
    reverse = _find_contact(other, user.id)
    if reverse is None or reverse.chat_room_id is None:
        return None
    if db.get(ChatRoom, reverse.chat_room_id) is None:
        return None
    return reverse.chat_room_id


def list_contacts(user: User) -> list[dict[str, Any]]:
    return [serialize_contact(contact) for contact in user.contacts]


def add_contact(db: Session, user: User, name: str | None, username: str | None) -> dict[str, Any]:
    """Add ``username`` to ``user``'s contacts under the alias ``name``."""
    if not username:
        raise MissingFieldsError(["username"])

    new_contact = db.query(User).filter(User.username == username).first()
    if new_contact is None:
        raise NotFoundError("User does not exist")
    if new_contact.id == user.id:
        raise ConflictError("You can't add yourself as a contact")

    for contact in user.contacts:
        if contact.contact_user_id == new_contact.id:
            raise ConflictError("Contact exists already")
        if name and contact.name == name:
            raise ConflictError("Contact name exists already")

    chat_room_id = shared_chat_room_id(db, user, new_contact)
    if chat_room_id is None:
        store = ChatRoomStore(db)
        room = store.create_chat_room(RoomType.PRIVATE, [new_contact.id, user.id])
        chat_room_id = room.id

    contact = Contact(
        owner_id=user.id,
        contact_user_id=new_contact.id,
        name=name,
        chat_room_id=chat_room_id,
    )
    user.contacts.append(contact)
    db.commit()
    db.refresh(contact)
    logger.info(
        "contact added owner_id=%s contact_id=%s room_id=%s",
        user.id,
        new_contact.id,
        chat_room_id,
    )
    return serialize_contact(contact)


def delete_contact(db: Session, user: User, username: str | None) -> None:
    """Remove ``username`` from ``user``'s contacts.

    The shared private room is deleted when the other user does not list
    ``user`` either.
    """
    if not username:
        raise MissingFieldsError(["username"])

    aimed = db.query(User).filter(User.username == username).first()
    if aimed is None:
        raise NotFoundError("User does not exist")

    contact = _find_contact(user, aimed.id)
    if contact is None:
        raise NotFoundError("Contact does not exist")

    chat_room_id = contact.chat_room_id
    user.contacts.remove(contact)
    db.flush()

    if chat_room_id is not None and shared_chat_room_id(db, user, aimed) is None:
        ChatRoomStore(db).delete_chat_room(chat_room_id)

    db.commit()
    logger.info("contact removed owner_id=%s contact_id=%s", user.id, aimed.id)
