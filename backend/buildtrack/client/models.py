"""Typed rows exchanged with the notification backend.

Every payload is validated here, at the boundary; untyped dicts never reach
the controller. Item models are frozen so local patches always produce a new
object instead of mutating one shared with a previous snapshot.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from buildtrack.client.errors import PayloadValidationError

ChangeType = Literal["INSERT", "UPDATE", "DELETE"]

ModelT = TypeVar("ModelT", bound=BaseModel)


def utc_now() -> datetime:
    return datetime.now(UTC)


class _Row(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("metadata", "config", mode="before", check_fields=False)
    @classmethod
    def _null_to_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator(
        "created_at", "updated_at", "read_at", "archived_at", mode="after", check_fields=False
    )
    @classmethod
    def _as_utc(cls, v: datetime | None) -> datetime | None:
        # SQLite drops the offset; stored timestamps are always UTC
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)


class SessionIdentity(_Row):
    user_id: str
    email: str | None = None


class ActivityEvent(_Row):
    id: str
    actor_user_id: str | None = None
    action: str
    entity_table: str
    entity_id: str | None = None
    message: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class ActivityEventState(_Row):
    id: str | None = None
    user_id: str
    event_id: str
    read_at: datetime | None = None
    archived_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ActivityItem(ActivityEvent):
    """An activity event with this user's state merged in."""

    read_at: datetime | None = None
    archived_at: datetime | None = None


class AppNotification(_Row):
    id: str
    user_id: str
    type: str
    title: str
    body: str | None = None
    severity: str = "info"
    entity_table: str | None = None
    entity_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    dedupe_key: str | None = None
    read_at: datetime | None = None
    archived_at: datetime | None = None
    created_at: datetime


class NotificationRule(_Row):
    id: str | None = None
    user_id: str | None = None
    type: str
    enabled: bool = True
    config: dict[str, Any] = Field(default_factory=dict)


class ChangePayload(_Row):
    type: ChangeType
    table: str
    new: dict[str, Any] | None = None
    old: dict[str, Any] | None = None

    def row(self) -> dict[str, Any]:
        return self.new or self.old or {}


def validate_row(model: type[ModelT], data: Any) -> ModelT:
    """Validate one backend row, raising PayloadValidationError on a bad shape."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise PayloadValidationError(
            f"Unexpected {model.__name__} payload: {exc.error_count()} error(s)"
        ) from exc


def validate_rows(model: type[ModelT], data: Any) -> list[ModelT]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise PayloadValidationError(f"Expected a list of {model.__name__} rows")
    return [validate_row(model, item) for item in data]
