from buildtrack.client.backend import ChannelBinding, LiveChannel, NotificationBackend
from buildtrack.client.controller import (
    ActivityFeedController,
    AppNotificationController,
    NotificationController,
)
from buildtrack.client.errors import BackendError, NotAuthenticatedError, PayloadValidationError
from buildtrack.client.http_backend import HttpLiveChannel, HttpNotificationBackend
from buildtrack.client.models import (
    ActivityEvent,
    ActivityEventState,
    ActivityItem,
    AppNotification,
    ChangePayload,
    NotificationRule,
    SessionIdentity,
)
from buildtrack.client.notices import Notice, NoticeBoard
from buildtrack.client.view import NotificationCenterView, format_relative_age, render_text

__all__ = [
    "ActivityEvent",
    "ActivityEventState",
    "ActivityFeedController",
    "ActivityItem",
    "AppNotification",
    "AppNotificationController",
    "BackendError",
    "ChangePayload",
    "ChannelBinding",
    "HttpLiveChannel",
    "HttpNotificationBackend",
    "LiveChannel",
    "NotAuthenticatedError",
    "Notice",
    "NoticeBoard",
    "NotificationBackend",
    "NotificationCenterView",
    "NotificationController",
    "NotificationRule",
    "PayloadValidationError",
    "SessionIdentity",
    "format_relative_age",
    "render_text",
]
