"""Contact-related Pydantic schemas."""

from pydantic import BaseModel, Field


class ContactCreate(BaseModel):
    name: str | None = Field(None, max_length=120, description="Local alias for the contact")
    username: str | None = Field(None, description="Username of the user to add")


class ContactDelete(BaseModel):
    username: str | None = None
