"""Service for fanning out admin notifications and tracking their state."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from buildtrack.core.constants import (
    TABLE_NOTIFICATION_RULES,
    TABLE_NOTIFICATIONS,
    TYPE_LOW_STOCK,
    TYPE_MAINTENANCE,
)
from buildtrack.models.notification import AppNotification, NotificationSeverity
from buildtrack.models.notification_rule import NotificationRule
from buildtrack.repositories.notification_repository import AppNotificationRepository
from buildtrack.repositories.notification_rule_repository import NotificationRuleRepository
from buildtrack.repositories.user_role_repository import UserRoleRepository
from buildtrack.schemas.notification import AppNotificationResponse
from buildtrack.schemas.notification_rule import NotificationRuleResponse
from buildtrack.services.realtime import ChangeFeed, change_feed

logger = logging.getLogger(__name__)


def _notification_row(notification: AppNotification) -> dict[str, Any]:
    return AppNotificationResponse.model_validate(notification).model_dump(mode="json")


class NotificationService:
    """Creates per-admin notifications and applies read/archive patches."""

    def __init__(self, db: Session, feed: ChangeFeed | None = None):
        self.db = db
        self.feed = feed or change_feed
        self.repo = AppNotificationRepository(db)
        self.rule_repo = NotificationRuleRepository(db)
        self.role_repo = UserRoleRepository(db)

    def create_admin_notification(
        self,
        *,
        type: str,
        title: str,
        body: str | None = None,
        severity: str = NotificationSeverity.INFO.value,
        entity_table: str | None = None,
        entity_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        dedupe_key: str | None = None,
    ) -> list[AppNotification]:
        """Deliver one notification to every admin who has the type enabled.

        Admins that already hold a notification with the same ``dedupe_key``
        are skipped.
        """
        created: list[AppNotification] = []
        for user_id in self.role_repo.get_user_ids():
            if not self.rule_repo.is_enabled(user_id, type):
                logger.debug("Notification type %s disabled for %s", type, user_id)
                continue
            if dedupe_key and self.repo.get_by_dedupe_key(user_id, dedupe_key):
                continue
            notification = self.repo.create(
                user_id=user_id,
                type=type,
                title=title,
                body=body,
                severity=severity,
                entity_table=entity_table,
                entity_id=entity_id,
                metadata=metadata,
                dedupe_key=dedupe_key,
            )
            self.feed.publish(TABLE_NOTIFICATIONS, "INSERT", new=_notification_row(notification))
            created.append(notification)
        return created

    def notify_low_stock(
        self,
        *,
        material_name: str,
        quantity: float,
        threshold: float,
        material_id: str | None = None,
    ) -> list[AppNotification]:
        """Notify admins that a material dropped to or below its threshold."""
        return self.create_admin_notification(
            type=TYPE_LOW_STOCK,
            title="Low stock",
            body=f"{material_name} is at {quantity:g} (threshold {threshold:g}).",
            severity=NotificationSeverity.WARNING.value,
            entity_table="materials",
            entity_id=material_id,
            metadata={"quantity": quantity, "threshold": threshold},
            dedupe_key=f"low_stock:{material_id}" if material_id else None,
        )

    def notify_maintenance_due(
        self,
        *,
        equipment_name: str,
        due_date: str,
        maintenance_id: str | None = None,
    ) -> list[AppNotification]:
        """Notify admins that scheduled equipment maintenance is due."""
        return self.create_admin_notification(
            type=TYPE_MAINTENANCE,
            title="Maintenance due",
            body=f"{equipment_name} is due for maintenance on {due_date}.",
            entity_table="maintenance_records",
            entity_id=maintenance_id,
            metadata={"due_date": due_date},
            dedupe_key=f"maintenance:{maintenance_id}:{due_date}" if maintenance_id else None,
        )

    def list_for_user(self, user_id: UUID, limit: int = 100) -> list[AppNotification]:
        return self.repo.get_for_user(user_id, limit=limit)

    def update_state(
        self, user_id: UUID, notification_ids: list[UUID], values: dict[str, Any]
    ) -> list[AppNotification]:
        """Patch read/archive timestamps and push an UPDATE for every row touched."""
        rows = self.repo.update_state_many(user_id, notification_ids, values)
        for row in rows:
            self.feed.publish(TABLE_NOTIFICATIONS, "UPDATE", new=_notification_row(row))
        return rows

    def set_rule(
        self,
        user_id: UUID,
        rule_type: str,
        enabled: bool,
        config: dict[str, Any] | None = None,
    ) -> NotificationRule:
        existing = self.rule_repo.get(user_id, rule_type)
        rule = self.rule_repo.upsert(user_id, rule_type, enabled, config)
        self.feed.publish(
            TABLE_NOTIFICATION_RULES,
            "UPDATE" if existing is not None else "INSERT",
            new=NotificationRuleResponse.model_validate(rule).model_dump(mode="json"),
        )
        return rule
