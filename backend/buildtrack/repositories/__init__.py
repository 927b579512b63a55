from buildtrack.repositories.activity_event_repository import ActivityEventRepository
from buildtrack.repositories.activity_event_state_repository import (
    ActivityEventStateRepository,
)
from buildtrack.repositories.notification_repository import AppNotificationRepository
from buildtrack.repositories.notification_rule_repository import NotificationRuleRepository
from buildtrack.repositories.user_role_repository import UserRoleRepository

__all__ = [
    "ActivityEventRepository",
    "ActivityEventStateRepository",
    "AppNotificationRepository",
    "NotificationRuleRepository",
    "UserRoleRepository",
]
