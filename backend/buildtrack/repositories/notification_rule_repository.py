"""Repository for NotificationRule operations."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from buildtrack.models.notification_rule import NotificationRule
from buildtrack.models.shared import generate_uuid


class NotificationRuleRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: UUID, rule_type: str) -> NotificationRule | None:
        return (
            self.db.query(NotificationRule)
            .filter(NotificationRule.user_id == user_id, NotificationRule.type == rule_type)
            .first()
        )

    def get_all(self, user_id: UUID) -> list[NotificationRule]:
        return (
            self.db.query(NotificationRule)
            .filter(NotificationRule.user_id == user_id)
            .order_by(NotificationRule.type.asc())
            .all()
        )

    def is_enabled(self, user_id: UUID, rule_type: str) -> bool:
        rule = self.get(user_id, rule_type)
        return True if rule is None else bool(rule.enabled)

    def upsert(
        self,
        user_id: UUID,
        rule_type: str,
        enabled: bool,
        config: dict[str, Any] | None = None,
    ) -> NotificationRule:
        """Create or update a rule. ``config=None`` keeps the stored config."""
        rule = self.get(user_id, rule_type)
        if rule is None:
            rule = NotificationRule(
                id=generate_uuid(),
                user_id=user_id,
                type=rule_type,
                config=config or {},
            )
            self.db.add(rule)
        elif config is not None:
            rule.config = config  # type: ignore[assignment]
        rule.enabled = enabled  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(rule)
        return rule
