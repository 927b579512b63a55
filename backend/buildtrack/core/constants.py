"""Names shared by the API and the client: realtime tables and notification types."""

# Tables that can be subscribed to over the realtime endpoint
TABLE_ACTIVITY_EVENTS = "activity_events"
TABLE_ACTIVITY_EVENT_STATES = "activity_event_states"
TABLE_NOTIFICATIONS = "notifications"
TABLE_NOTIFICATION_RULES = "notification_rules"

REALTIME_TABLES = frozenset(
    {
        TABLE_ACTIVITY_EVENTS,
        TABLE_ACTIVITY_EVENT_STATES,
        TABLE_NOTIFICATIONS,
        TABLE_NOTIFICATION_RULES,
    }
)

# Notification types
TYPE_LOW_STOCK = "low_stock"
TYPE_MAINTENANCE = "maintenance"
TYPE_BUDGET = "budget"
TYPE_PAYMENT = "payment"
TYPE_DOCUMENT = "document"

NOTIFICATION_TYPES = (
    TYPE_LOW_STOCK,
    TYPE_MAINTENANCE,
    TYPE_BUDGET,
    TYPE_PAYMENT,
    TYPE_DOCUMENT,
)
