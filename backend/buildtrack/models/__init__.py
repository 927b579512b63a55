from buildtrack.models.activity_event import ActivityEvent
from buildtrack.models.activity_event_state import ActivityEventState
from buildtrack.models.notification import AppNotification, NotificationSeverity
from buildtrack.models.notification_rule import NotificationRule
from buildtrack.models.user_role import AppRole, UserRole

__all__ = [
    "ActivityEvent",
    "ActivityEventState",
    "AppNotification",
    "AppRole",
    "NotificationRule",
    "NotificationSeverity",
    "UserRole",
]
