"""Repository for per-user AppNotification operations."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from buildtrack.models.notification import AppNotification, NotificationSeverity
from buildtrack.models.shared import generate_uuid, utc_now

STATE_FIELDS = ("read_at", "archived_at")


class AppNotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        user_id: UUID,
        type: str,
        title: str,
        body: str | None = None,
        severity: str = NotificationSeverity.INFO.value,
        entity_table: str | None = None,
        entity_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        dedupe_key: str | None = None,
    ) -> AppNotification:
        notification = AppNotification(
            id=generate_uuid(),
            user_id=user_id,
            type=type,
            title=title,
            body=body,
            severity=severity,
            entity_table=entity_table,
            entity_id=entity_id,
            metadata_=metadata or {},
            dedupe_key=dedupe_key,
            created_at=utc_now(),
        )
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def get_by_id(self, notification_id: UUID) -> AppNotification | None:
        return (
            self.db.query(AppNotification)
            .filter(AppNotification.id == notification_id)
            .first()
        )

    def get_by_dedupe_key(self, user_id: UUID, dedupe_key: str) -> AppNotification | None:
        return (
            self.db.query(AppNotification)
            .filter(
                AppNotification.user_id == user_id,
                AppNotification.dedupe_key == dedupe_key,
            )
            .first()
        )

    def get_for_user(self, user_id: UUID, limit: int = 100) -> list[AppNotification]:
        return (
            self.db.query(AppNotification)
            .filter(AppNotification.user_id == user_id)
            .order_by(AppNotification.created_at.desc(), AppNotification.id.desc())
            .limit(limit)
            .all()
        )

    def update_state_many(
        self, user_id: UUID, notification_ids: list[UUID], values: dict[str, Any]
    ) -> list[AppNotification]:
        """Patch read/archive timestamps on the user's own notifications."""
        if not notification_ids:
            return []
        rows = (
            self.db.query(AppNotification)
            .filter(
                AppNotification.user_id == user_id,
                AppNotification.id.in_(notification_ids),
            )
            .all()
        )
        for row in rows:
            for field in STATE_FIELDS:
                if field in values:
                    setattr(row, field, values[field])
        self.db.commit()
        for row in rows:
            self.db.refresh(row)
        return rows
