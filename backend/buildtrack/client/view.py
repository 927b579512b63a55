"""Presentation model for the notification center.

Everything shown here is read straight off a controller; the view owns only
the selected tab. Buttons map 1:1 onto controller operations via
``dispatch``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

from buildtrack.client.controller import AppNotificationController, NotificationController
from buildtrack.client.models import ActivityItem, AppNotification, utc_now
from buildtrack.core.constants import NOTIFICATION_TYPES

TAB_INBOX = "inbox"
TAB_ARCHIVED = "archived"
TAB_RULES = "rules"

TAB_LABELS = {TAB_INBOX: "Inbox", TAB_ARCHIVED: "Archived", TAB_RULES: "Rules"}

BADGE_DESTRUCTIVE = "destructive"
BADGE_PRIMARY = "primary"
BADGE_MUTED = "muted"
BADGE_SUBTLE = "subtle"

SKELETON_ROWS = 3
EMPTY_TITLE = "Nothing here"
EMPTY_DESCRIPTION = "You’re all caught up."

ACTION_ARCHIVE = "archive"
ACTION_UNARCHIVE = "unarchive"
ACTION_MARK_READ = "mark_read"
ACTION_MARK_UNREAD = "mark_unread"
ACTION_MARK_ALL_READ = "mark_all_read"
ACTION_REFRESH = "refresh"
ACTION_ENABLE_RULE = "enable_rule"
ACTION_DISABLE_RULE = "disable_rule"

_UNITS = (
    ("minute", 60, 60),
    ("hour", 3600, 24),
    ("day", 24 * 3600, 30),
    ("month", 30 * 24 * 3600, 12),
    ("year", 365 * 24 * 3600, None),
)


def badge_text(unread_count: int) -> str | None:
    if unread_count <= 0:
        return None
    return "99+" if unread_count > 99 else str(unread_count)


def action_badge_style(action: str) -> str:
    return {
        "DELETE": BADGE_DESTRUCTIVE,
        "UPDATE": BADGE_PRIMARY,
        "INSERT": BADGE_MUTED,
    }.get(action, BADGE_SUBTLE)


def severity_badge_style(severity: str) -> str:
    return {
        "critical": BADGE_DESTRUCTIVE,
        "warning": BADGE_PRIMARY,
    }.get(severity, BADGE_MUTED)


def format_relative_age(created_at: datetime, now: datetime | None = None) -> str:
    """Single-unit distance with a suffix, e.g. "5 minutes ago" or "in 2 days".

    Units step up at 60 seconds, 60 minutes, 24 hours, 30 days and 12 months;
    the count is rounded to the nearest whole unit.
    """
    now = now or utc_now()
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    delta = (now - created_at).total_seconds()
    seconds = abs(delta)

    unit, count = "second", _round_half_up(seconds)
    if seconds >= 60:
        for name, size, ceiling in _UNITS:
            value = seconds / size
            if ceiling is None or value < ceiling:
                unit, count = name, _round_half_up(value)
                break
    label = f"{count} {unit}{'' if count == 1 else 's'}"
    return f"in {label}" if delta < 0 else f"{label} ago"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class ItemAction:
    action: str
    label: str


@dataclass(frozen=True)
class ItemRow:
    id: str
    title: str
    badge: str
    badge_style: str
    entity_table: str | None
    age: str
    unread: bool
    actions: list[ItemAction] = field(default_factory=list)


@dataclass(frozen=True)
class RuleRow:
    type: str
    enabled: bool
    action: ItemAction


@dataclass(frozen=True)
class NotificationCenterModel:
    title: str
    tab: str
    tabs: list[str]
    badge: str | None
    loading: bool
    skeleton_rows: int = 0
    rows: list[ItemRow] = field(default_factory=list)
    rules: list[RuleRow] = field(default_factory=list)
    empty_title: str | None = None
    empty_description: str | None = None
    toolbar: list[ItemAction] = field(default_factory=list)


class NotificationCenterView:
    """Notification center over one controller."""

    title = "Notifications"

    def __init__(self, controller: NotificationController, tab: str = TAB_INBOX) -> None:
        self.controller = controller
        self.tab = TAB_INBOX
        self.select_tab(tab)

    @property
    def tabs(self) -> list[str]:
        if isinstance(self.controller, AppNotificationController):
            return [TAB_INBOX, TAB_ARCHIVED, TAB_RULES]
        return [TAB_INBOX, TAB_ARCHIVED]

    def select_tab(self, tab: str) -> None:
        if tab not in self.tabs:
            raise ValueError(f"Unknown tab: {tab}")
        self.tab = tab

    def build(self, now: datetime | None = None) -> NotificationCenterModel:
        controller = self.controller
        now = now or utc_now()

        toolbar = [ItemAction(ACTION_REFRESH, "Refresh")]
        if self.tab == TAB_INBOX:
            toolbar.append(ItemAction(ACTION_MARK_ALL_READ, "Mark all read"))

        model = NotificationCenterModel(
            title=self.title,
            tab=self.tab,
            tabs=self.tabs,
            badge=badge_text(controller.unread_count),
            loading=controller.loading,
            toolbar=toolbar,
        )
        if controller.loading:
            return replace(model, skeleton_rows=SKELETON_ROWS)

        if self.tab == TAB_RULES:
            return replace(model, rules=self._rule_rows())

        items = controller.archived_items if self.tab == TAB_ARCHIVED else controller.active_items
        if not items:
            return replace(model, empty_title=EMPTY_TITLE, empty_description=EMPTY_DESCRIPTION)
        return replace(model, rows=[self._item_row(item, now) for item in items])

    def _item_row(self, item: ActivityItem | AppNotification, now: datetime) -> ItemRow:
        unread = item.read_at is None
        actions = [
            ItemAction(ACTION_UNARCHIVE, "Restore")
            if self.tab == TAB_ARCHIVED
            else ItemAction(ACTION_ARCHIVE, "Archive"),
            ItemAction(ACTION_MARK_READ, "Mark read")
            if unread
            else ItemAction(ACTION_MARK_UNREAD, "Mark unread"),
        ]
        if isinstance(item, AppNotification):
            title, badge, style = item.title, item.severity, severity_badge_style(item.severity)
        else:
            title, badge, style = item.message, item.action, action_badge_style(item.action)
        return ItemRow(
            id=item.id,
            title=title,
            badge=badge,
            badge_style=style,
            entity_table=item.entity_table,
            age=format_relative_age(item.created_at, now),
            unread=unread,
            actions=actions,
        )

    def _rule_rows(self) -> list[RuleRow]:
        controller = self.controller
        if not isinstance(controller, AppNotificationController):
            return []
        types = list(NOTIFICATION_TYPES)
        types.extend(t for t in sorted(controller.rules) if t not in types)
        rows = []
        for rule_type in types:
            enabled = controller.rule_enabled(rule_type)
            action = (
                ItemAction(ACTION_DISABLE_RULE, "Disable")
                if enabled
                else ItemAction(ACTION_ENABLE_RULE, "Enable")
            )
            rows.append(RuleRow(type=rule_type, enabled=enabled, action=action))
        return rows

    async def dispatch(self, action: str, item_id: str | None = None) -> None:
        """Run the controller operation behind a button."""
        controller = self.controller
        if action == ACTION_REFRESH:
            await controller.refresh()
        elif action == ACTION_MARK_ALL_READ:
            await controller.mark_all_read()
        elif action in (ACTION_ENABLE_RULE, ACTION_DISABLE_RULE):
            if not isinstance(controller, AppNotificationController):
                raise ValueError(f"{action} needs the notifications controller")
            await controller.set_rule_enabled(_require(item_id, action), action == ACTION_ENABLE_RULE)
        elif action == ACTION_ARCHIVE:
            await controller.archive(_require(item_id, action))
        elif action == ACTION_UNARCHIVE:
            await controller.unarchive(_require(item_id, action))
        elif action == ACTION_MARK_READ:
            await controller.mark_read(_require(item_id, action), True)
        elif action == ACTION_MARK_UNREAD:
            await controller.mark_read(_require(item_id, action), False)
        else:
            raise ValueError(f"Unknown action: {action}")


def render_text(model: NotificationCenterModel) -> str:
    """Plain-text rendering, used by the CLI."""
    badge = f" ({model.badge})" if model.badge else ""
    tabs = " | ".join(
        f"[{TAB_LABELS[t]}]" if t == model.tab else TAB_LABELS[t] for t in model.tabs
    )
    lines = [f"{model.title}{badge}", tabs, ""]

    if model.loading:
        lines.extend("  ..." for _ in range(model.skeleton_rows))
    elif model.tab == TAB_RULES:
        for rule in model.rules:
            lines.append(f"  [{'x' if rule.enabled else ' '}] {rule.type}")
    elif not model.rows:
        lines.append(f"  {model.empty_title}")
        lines.append(f"  {model.empty_description}")
    else:
        for row in model.rows:
            marker = "*" if row.unread else " "
            meta = " ".join(p for p in (row.badge, row.entity_table, row.age) if p)
            lines.append(f"{marker} {row.title}")
            lines.append(f"    {meta}  <{row.id}>")
    return "\n".join(lines)


def _require(item_id: str | None, action: str) -> str:
    if not item_id:
        raise ValueError(f"{action} needs an item id")
    return item_id

