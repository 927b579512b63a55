"""Pydantic schemas for the signed-in session."""

from uuid import UUID

from pydantic import BaseModel


class SessionResponse(BaseModel):
    user_id: UUID
    email: str | None = None
    is_admin: bool = False
