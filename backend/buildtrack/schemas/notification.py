"""Pydantic schemas for per-user app notifications."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

from buildtrack.models.notification import NotificationSeverity


class AppNotificationResponse(BaseModel):
    id: UUID
    user_id: UUID
    type: str
    title: str
    body: str | None
    severity: str
    entity_table: str | None
    entity_id: str | None
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("metadata_", "metadata"),
    )
    dedupe_key: str | None
    read_at: datetime | None
    archived_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class AppNotificationStatePatch(BaseModel):
    """Partial patch: omitted fields are left unchanged, ``null`` clears."""

    read_at: datetime | None = None
    archived_at: datetime | None = None

    def values(self) -> dict[str, datetime | None]:
        return {
            field: getattr(self, field)
            for field in ("read_at", "archived_at")
            if field in self.model_fields_set
        }


class AppNotificationBulkPatch(AppNotificationStatePatch):
    ids: list[UUID] = Field(..., max_length=500)


class AdminNotificationCreate(BaseModel):
    type: str = Field(min_length=1, max_length=50)
    title: str = Field(min_length=1, max_length=255)
    body: str | None = None
    severity: NotificationSeverity = NotificationSeverity.INFO
    entity_table: str | None = Field(default=None, max_length=100)
    entity_id: str | None = Field(default=None, max_length=255)
    metadata: dict[str, Any] = Field(default_factory=dict)
    dedupe_key: str | None = Field(default=None, max_length=255)


class AdminNotificationResult(BaseModel):
    created: int
