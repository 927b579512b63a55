"""Notification backend interface.

Defines the abstract NotificationBackend that the controllers talk to: the
identity query, table reads, upserts, and live channels. HttpNotificationBackend
implements it against the BuildTrack API; tests provide in-memory doubles.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from buildtrack.client.models import (
    ActivityEvent,
    ActivityEventState,
    AppNotification,
    ChangePayload,
    NotificationRule,
    SessionIdentity,
)


@dataclass(frozen=True)
class ChannelBinding:
    """One table feed inside a live channel.

    ``event`` is "INSERT", "UPDATE", "DELETE" or "*"; ``filter`` holds
    column equality constraints, e.g. ``{"user_id": uid}``.
    """

    table: str
    event: str = "*"
    filter: dict[str, str] = field(default_factory=dict)

    def accepts(self, payload: ChangePayload) -> bool:
        if payload.table != self.table:
            return False
        if self.event != "*" and payload.type != self.event:
            return False
        row = payload.row()
        return all(str(row.get(key)) == value for key, value in self.filter.items())


class LiveChannel(ABC):
    """An open push subscription. Close it exactly once."""

    def __init__(self, name: str, bindings: list[ChannelBinding]) -> None:
        self.name = name
        self.bindings = list(bindings)

    @abstractmethod
    def messages(self) -> AsyncIterator[ChangePayload]:
        """Yield payloads accepted by this channel's bindings.

        Raises BackendError if the underlying connection fails.
        """
        ...  # pragma: no cover

    @abstractmethod
    async def close(self) -> None:
        ...  # pragma: no cover

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...  # pragma: no cover


class NotificationBackend(ABC):
    """The external contracts the notification controllers depend on.

    Every method raises BackendError (or a subclass) on failure.
    """

    @abstractmethod
    async def get_session(self) -> SessionIdentity | None:
        """Current identity, or None when signed out."""
        ...  # pragma: no cover

    @abstractmethod
    async def select_recent_events(self, limit: int) -> list[ActivityEvent]:
        """Most recent events, newest first."""
        ...  # pragma: no cover

    @abstractmethod
    async def select_event_states(
        self, user_id: str, event_ids: list[str]
    ) -> list[ActivityEventState]:
        ...  # pragma: no cover

    @abstractmethod
    async def upsert_event_states(
        self, user_id: str, event_ids: list[str], patch: dict[str, datetime | None]
    ) -> list[ActivityEventState]:
        """Upsert one row per event keyed on (user_id, event_id) with the same patch."""
        ...  # pragma: no cover

    @abstractmethod
    async def select_notifications(self, limit: int) -> list[AppNotification]:
        ...  # pragma: no cover

    @abstractmethod
    async def update_notifications(
        self, notification_ids: list[str], patch: dict[str, datetime | None]
    ) -> list[AppNotification]:
        ...  # pragma: no cover

    @abstractmethod
    async def select_rules(self) -> list[NotificationRule]:
        ...  # pragma: no cover

    @abstractmethod
    async def upsert_rule(
        self, rule_type: str, enabled: bool, config: dict[str, Any] | None
    ) -> NotificationRule:
        """Create or update a rule; a None ``config`` keeps the stored one."""
        ...  # pragma: no cover

    @abstractmethod
    async def open_channel(self, name: str, bindings: list[ChannelBinding]) -> LiveChannel:
        ...  # pragma: no cover
