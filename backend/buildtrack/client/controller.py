"""Client notification controllers.

A controller keeps an in-memory, eventually consistent view of "my
notifications". Two writers feed it: the controller's own optimistic patches
after a successful write, and the live channel replaying the stored row.
Both apply the stored ``read_at`` / ``archived_at`` values wholesale, so
applying either one twice, or in either order, ends in the same item.

Every operation is best-effort: backend failures become destructive notices
on the NoticeBoard and local state stays at its last known good value.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Generic, TypeVar

from buildtrack.client.backend import ChannelBinding, LiveChannel, NotificationBackend
from buildtrack.client.errors import BackendError, NotAuthenticatedError, PayloadValidationError
from buildtrack.client.models import (
    ActivityEvent,
    ActivityEventState,
    ActivityItem,
    AppNotification,
    ChangePayload,
    NotificationRule,
    utc_now,
    validate_row,
)
from buildtrack.client.notices import NoticeBoard
from buildtrack.core.config import settings
from buildtrack.core.constants import (
    TABLE_ACTIVITY_EVENT_STATES,
    TABLE_ACTIVITY_EVENTS,
    TABLE_NOTIFICATION_RULES,
    TABLE_NOTIFICATIONS,
)

logger = logging.getLogger(__name__)

NOTICE_TITLE = "Notifications"
LIVE_NOTICE_TITLE = "Live updates"
NOTIFICATION_FETCH_LIMIT = 100

ItemT = TypeVar("ItemT", ActivityItem, AppNotification)
StatePatch = dict[str, datetime | None]


class NotificationController(ABC, Generic[ItemT]):
    """Shared state, derived lists, channel lifecycle and mutations."""

    channel_prefix = "notifications"

    def __init__(
        self,
        backend: NotificationBackend,
        notices: NoticeBoard | None = None,
        *,
        fetch_limit: int | None = None,
    ) -> None:
        self.backend = backend
        self.notices = notices if notices is not None else NoticeBoard()
        self.fetch_limit = fetch_limit or settings.ACTIVITY_FETCH_LIMIT
        self.user_id: str | None = None
        self.loading = True
        self.items: list[ItemT] = []
        self._channel: LiveChannel | None = None
        self._listener: asyncio.Task[None] | None = None
        self._closed = False

    # -- derived state --------------------------------------------------

    @property
    def unread_count(self) -> int:
        return sum(1 for i in self.items if i.read_at is None and i.archived_at is None)

    @property
    def active_items(self) -> list[ItemT]:
        return [i for i in self.items if i.archived_at is None]

    @property
    def archived_items(self) -> list[ItemT]:
        return [i for i in self.items if i.archived_at is not None]

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def live(self) -> bool:
        return self._listener is not None and not self._listener.done()

    def get_item(self, item_id: str) -> ItemT | None:
        return next((i for i in self.items if i.id == item_id), None)

    # -- lifecycle ------------------------------------------------------

    async def __aenter__(self) -> NotificationController[ItemT]:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def start(self) -> None:
        """Load the initial snapshot and open the live channel."""
        await self.refresh()

    async def refresh(self) -> None:
        """Reload everything for the current session.

        No session clears the list; it is not an error.
        """
        if self._closed:
            return
        self.loading = True
        try:
            session = await self.backend.get_session()
            if self._closed:
                return
            user_id = session.user_id if session else None
            await self.set_user(user_id)
            if user_id is None:
                self.items = []
                return
            items = await self._load(user_id)
            if self._closed or self.user_id != user_id:
                return
            self.items = items
        except BackendError as e:
            self._report(e)
        finally:
            if not self._closed:
                self.loading = False

    async def set_user(self, user_id: str | None) -> None:
        """Bind the controller to a user, swapping the live channel.

        The old channel is always released before a new one is opened. Calling
        this again for the same user only reopens a channel that has died.
        """
        if self._closed:
            return
        if user_id == self.user_id and (user_id is None or self.live):
            return
        await self._release_channel()
        if user_id != self.user_id:
            self.items = []
        self.user_id = user_id
        if user_id is not None:
            await self._acquire_channel(user_id)

    async def close(self) -> None:
        """Tear down; later async continuations will not touch state."""
        self._closed = True
        await self._release_channel()

    async def _acquire_channel(self, user_id: str) -> None:
        try:
            channel = await self.backend.open_channel(
                f"{self.channel_prefix}:{user_id}", self._bindings(user_id)
            )
        except BackendError as e:
            self._report(e)
            return
        if self._closed or self.user_id != user_id:
            await channel.close()
            return
        self._channel = channel
        self._listener = asyncio.create_task(self._listen(channel))

    async def _release_channel(self) -> None:
        listener, channel = self._listener, self._channel
        self._listener = None
        self._channel = None
        if listener is not None:
            if not listener.done():
                listener.cancel()
            await asyncio.gather(listener, return_exceptions=True)
        if channel is not None:
            await channel.close()

    async def _listen(self, channel: LiveChannel) -> None:
        try:
            async for payload in channel.messages():
                if self._closed:
                    break
                self.apply_change(payload)
        except BackendError as e:
            if not self._closed:
                self._report(e, title=LIVE_NOTICE_TITLE)
        except Exception:
            logger.exception("Live channel %s stopped", channel.name)
            if not self._closed:
                self.notices.error(LIVE_NOTICE_TITLE, "Live updates stopped unexpectedly")

    def apply_change(self, payload: ChangePayload) -> None:
        """Fold one pushed row change into local state."""
        if self._closed:
            return
        try:
            self._apply_change(payload)
        except PayloadValidationError as e:
            logger.warning("Ignoring %s change on %s: %s", payload.type, payload.table, e)

    # -- mutations ------------------------------------------------------

    async def mark_read(self, item_id: str, read: bool = True) -> None:
        await self._update([item_id], {"read_at": utc_now() if read else None})

    async def archive(self, item_id: str) -> None:
        await self._update([item_id], {"archived_at": utc_now()})

    async def unarchive(self, item_id: str) -> None:
        await self._update([item_id], {"archived_at": None})

    async def mark_all_read(self) -> None:
        """Mark every active, unread item read in a single write."""
        item_ids = [i.id for i in self.items if i.archived_at is None and i.read_at is None]
        if not item_ids:
            return
        await self._update(item_ids, {"read_at": utc_now()})

    async def _update(self, item_ids: list[str], patch: StatePatch) -> None:
        if self._closed:
            return
        try:
            if self.user_id is None:
                raise NotAuthenticatedError()
            await self._write_state(self.user_id, item_ids, patch)
        except BackendError as e:
            self._report(e)
            return
        if self._closed:
            return
        self._patch(set(item_ids), patch)

    # -- helpers --------------------------------------------------------

    def _prepend(self, item: ItemT) -> bool:
        if any(i.id == item.id for i in self.items):
            return False
        self.items = [item, *self.items][: self.fetch_limit]
        return True

    def _patch(self, item_ids: set[str], patch: StatePatch) -> None:
        self.items = [i.model_copy(update=patch) if i.id in item_ids else i for i in self.items]

    def _report(self, error: BackendError, title: str = NOTICE_TITLE) -> None:
        self.notices.error(title, str(error))

    @abstractmethod
    async def _load(self, user_id: str) -> list[ItemT]:
        ...  # pragma: no cover

    @abstractmethod
    def _bindings(self, user_id: str) -> list[ChannelBinding]:
        ...  # pragma: no cover

    @abstractmethod
    async def _write_state(self, user_id: str, item_ids: list[str], patch: StatePatch) -> None:
        ...  # pragma: no cover

    @abstractmethod
    def _apply_change(self, payload: ChangePayload) -> None:
        ...  # pragma: no cover


class ActivityFeedController(NotificationController[ActivityItem]):
    """System-wide activity events with this user's read/archive overlay."""

    channel_prefix = "activity"

    async def _load(self, user_id: str) -> list[ActivityItem]:
        events = await self.backend.select_recent_events(self.fetch_limit)
        event_ids = [e.id for e in events]
        states = await self.backend.select_event_states(user_id, event_ids) if event_ids else []
        state_map = {s.event_id: s for s in states}
        return [_merge(event, state_map.get(event.id)) for event in events]

    def _bindings(self, user_id: str) -> list[ChannelBinding]:
        return [
            ChannelBinding(TABLE_ACTIVITY_EVENTS, "INSERT"),
            ChannelBinding(TABLE_ACTIVITY_EVENT_STATES, "*", {"user_id": user_id}),
        ]

    async def _write_state(self, user_id: str, item_ids: list[str], patch: StatePatch) -> None:
        await self.backend.upsert_event_states(user_id, item_ids, patch)

    def _apply_change(self, payload: ChangePayload) -> None:
        if payload.table == TABLE_ACTIVITY_EVENTS:
            if payload.type != "INSERT":
                return
            event = validate_row(ActivityEvent, payload.new)
            if self._prepend(_merge(event, None)):
                self.notices.push("Activity", event.message)
        elif payload.table == TABLE_ACTIVITY_EVENT_STATES:
            if payload.type == "DELETE":
                # No state row means unread and in the inbox
                state = validate_row(ActivityEventState, payload.old)
                patch: StatePatch = {"read_at": None, "archived_at": None}
            else:
                state = validate_row(ActivityEventState, payload.new)
                patch = {"read_at": state.read_at, "archived_at": state.archived_at}
            if state.user_id != self.user_id:
                return
            self._patch({state.event_id}, patch)


class AppNotificationController(NotificationController[AppNotification]):
    """Per-user notifications plus the per-type delivery rules."""

    channel_prefix = "notifications"

    def __init__(
        self,
        backend: NotificationBackend,
        notices: NoticeBoard | None = None,
        *,
        fetch_limit: int | None = None,
    ) -> None:
        super().__init__(backend, notices, fetch_limit=fetch_limit or NOTIFICATION_FETCH_LIMIT)
        self.rules: dict[str, NotificationRule] = {}

    def rule_enabled(self, rule_type: str) -> bool:
        """A type without a stored rule is enabled."""
        rule = self.rules.get(rule_type)
        return True if rule is None else rule.enabled

    async def set_rule_enabled(self, rule_type: str, enabled: bool) -> None:
        """Upsert the rule, carrying over any stored ``config``."""
        if self._closed:
            return
        existing = self.rules.get(rule_type)
        config = dict(existing.config) if existing is not None else None
        try:
            rule = await self.backend.upsert_rule(rule_type, enabled, config)
        except BackendError as e:
            self._report(e)
            return
        if self._closed:
            return
        self.rules[rule_type] = rule

    async def _load(self, user_id: str) -> list[AppNotification]:
        notifications = await self.backend.select_notifications(self.fetch_limit)
        rules = await self.backend.select_rules()
        if not self._closed:
            self.rules = {r.type: r for r in rules}
        return notifications

    def _bindings(self, user_id: str) -> list[ChannelBinding]:
        return [
            ChannelBinding(TABLE_NOTIFICATIONS, "*", {"user_id": user_id}),
            ChannelBinding(TABLE_NOTIFICATION_RULES, "*", {"user_id": user_id}),
        ]

    async def _write_state(self, user_id: str, item_ids: list[str], patch: StatePatch) -> None:
        await self.backend.update_notifications(item_ids, patch)

    def _apply_change(self, payload: ChangePayload) -> None:
        if payload.table == TABLE_NOTIFICATIONS:
            if payload.type == "DELETE":
                gone = validate_row(AppNotification, payload.old)
                self.items = [i for i in self.items if i.id != gone.id]
                return
            notification = validate_row(AppNotification, payload.new)
            if notification.user_id != self.user_id:
                return
            if payload.type == "INSERT":
                if self._prepend(notification) and self.rule_enabled(notification.type):
                    self.notices.push(notification.title, notification.body or "")
            else:
                self._patch(
                    {notification.id},
                    {"read_at": notification.read_at, "archived_at": notification.archived_at},
                )
        elif payload.table == TABLE_NOTIFICATION_RULES and payload.type != "DELETE":
            rule = validate_row(NotificationRule, payload.new)
            self.rules[rule.type] = rule


def _merge(event: ActivityEvent, state: ActivityEventState | None) -> ActivityItem:
    return ActivityItem.model_validate(
        {
            **event.model_dump(),
            "read_at": state.read_at if state else None,
            "archived_at": state.archived_at if state else None,
        }
    )
