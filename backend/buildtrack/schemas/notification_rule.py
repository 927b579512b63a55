"""Pydantic schemas for NotificationRule."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class NotificationRuleResponse(BaseModel):
    id: UUID
    user_id: UUID
    type: str
    enabled: bool
    config: dict[str, Any]
    created_at: datetime | None
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class NotificationRuleUpdate(BaseModel):
    enabled: bool
    config: dict[str, Any] | None = None
