from buildtrack.schemas.activity_event import (
    ActivityEventCreate,
    ActivityEventResponse,
    ActivityEventStatePatch,
    ActivityEventStateResponse,
)
from buildtrack.schemas.notification import (
    AdminNotificationCreate,
    AdminNotificationResult,
    AppNotificationBulkPatch,
    AppNotificationResponse,
    AppNotificationStatePatch,
)
from buildtrack.schemas.notification_rule import (
    NotificationRuleResponse,
    NotificationRuleUpdate,
)
from buildtrack.schemas.realtime import ChangeMessage
from buildtrack.schemas.session import SessionResponse

__all__ = [
    "ActivityEventCreate",
    "ActivityEventResponse",
    "ActivityEventStatePatch",
    "ActivityEventStateResponse",
    "AdminNotificationCreate",
    "AdminNotificationResult",
    "AppNotificationBulkPatch",
    "AppNotificationResponse",
    "AppNotificationStatePatch",
    "ChangeMessage",
    "NotificationRuleResponse",
    "NotificationRuleUpdate",
    "SessionResponse",
]
