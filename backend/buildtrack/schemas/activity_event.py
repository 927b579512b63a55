"""Pydantic schemas for ActivityEvent and ActivityEventState."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field


class ActivityEventCreate(BaseModel):
    action: str = Field(min_length=1, max_length=50)
    entity_table: str = Field(min_length=1, max_length=100)
    entity_id: str | None = Field(default=None, max_length=255)
    message: str = Field(min_length=1)
    actor_user_id: UUID | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    keep_last: int | None = Field(default=None, ge=1)


class ActivityEventResponse(BaseModel):
    id: UUID
    actor_user_id: UUID | None
    action: str
    entity_table: str
    entity_id: str | None
    message: str
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("metadata_", "metadata"),
    )
    created_at: datetime

    model_config = {"from_attributes": True}


class ActivityEventStateResponse(BaseModel):
    id: UUID
    user_id: UUID
    event_id: UUID
    read_at: datetime | None
    archived_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class ActivityEventStatePatch(BaseModel):
    """Partial upsert body: omitted fields are left unchanged, ``null`` clears."""

    event_id: UUID
    read_at: datetime | None = None
    archived_at: datetime | None = None

    def values(self) -> dict[str, datetime | None]:
        return {
            field: getattr(self, field)
            for field in ("read_at", "archived_at")
            if field in self.model_fields_set
        }
