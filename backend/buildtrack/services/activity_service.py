"""Service for writing activity events and per-user event state."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from buildtrack.core.config import settings
from buildtrack.core.constants import TABLE_ACTIVITY_EVENT_STATES, TABLE_ACTIVITY_EVENTS
from buildtrack.models.activity_event import ActivityEvent
from buildtrack.models.activity_event_state import ActivityEventState
from buildtrack.repositories.activity_event_repository import ActivityEventRepository
from buildtrack.repositories.activity_event_state_repository import (
    ActivityEventStateRepository,
)
from buildtrack.schemas.activity_event import (
    ActivityEventResponse,
    ActivityEventStatePatch,
    ActivityEventStateResponse,
)
from buildtrack.services.realtime import ChangeFeed, change_feed

logger = logging.getLogger(__name__)

# Row-level actions recorded for dashboard tables
ACTION_INSERT = "INSERT"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"


def _state_row(state: ActivityEventState | None) -> dict[str, Any] | None:
    if state is None:
        return None
    return ActivityEventStateResponse.model_validate(state).model_dump(mode="json")


class ActivityService:
    """Appends activity events and maintains the read/archive overlay."""

    def __init__(self, db: Session, feed: ChangeFeed | None = None):
        self.db = db
        self.feed = feed or change_feed
        self.event_repo = ActivityEventRepository(db)
        self.state_repo = ActivityEventStateRepository(db)

    def log_activity_event(
        self,
        *,
        action: str,
        entity_table: str,
        message: str,
        entity_id: str | None = None,
        actor_user_id: UUID | None = None,
        metadata: dict[str, Any] | None = None,
        keep_last: int | None = None,
    ) -> ActivityEvent:
        """Record an event, trim the log to ``keep_last`` rows and push it live."""
        event = self.event_repo.create(
            action=action,
            entity_table=entity_table,
            entity_id=entity_id,
            message=message,
            actor_user_id=actor_user_id,
            metadata=metadata,
        )
        pruned = self.event_repo.prune(keep_last or settings.ACTIVITY_KEEP_LAST)
        if pruned:
            logger.info("Pruned %d old activity events", pruned)
        self.feed.publish(
            TABLE_ACTIVITY_EVENTS,
            "INSERT",
            new=ActivityEventResponse.model_validate(event).model_dump(mode="json"),
        )
        return event

    def log_change(
        self,
        *,
        entity_table: str,
        action: str,
        entity_id: str | None = None,
        actor_user_id: UUID | None = None,
        label: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ActivityEvent:
        """Record a row-level change on one of the dashboard tables."""
        verb = {
            ACTION_INSERT: "created",
            ACTION_UPDATE: "updated",
            ACTION_DELETE: "deleted",
        }.get(action, action.lower())
        subject = entity_table.removesuffix("s").replace("_", " ")
        message = f"{subject.capitalize()} {verb}"
        if label:
            message += f": {label}"
        return self.log_activity_event(
            action=action,
            entity_table=entity_table,
            entity_id=entity_id,
            message=message,
            actor_user_id=actor_user_id,
            metadata=metadata,
        )

    def get_states(self, user_id: UUID, event_ids: list[UUID]) -> list[ActivityEventState]:
        return self.state_repo.get_for_events(user_id, event_ids)

    def upsert_states(
        self, user_id: UUID, patches: list[ActivityEventStatePatch]
    ) -> list[ActivityEventState]:
        """Upsert state rows keyed on (user_id, event_id) and push the changes.

        Raises ValueError if any event does not exist.
        """
        if not patches:
            return []
        event_ids = list(dict.fromkeys(p.event_id for p in patches))
        missing = set(event_ids) - self.event_repo.get_existing_ids(event_ids)
        if missing:
            raise ValueError(
                "Activity event(s) not found: " + ", ".join(sorted(str(m) for m in missing))
            )

        previous = {
            state.event_id: _state_row(state)
            for state in self.state_repo.get_for_events(user_id, event_ids)
        }
        states = self.state_repo.upsert_many(
            user_id, [(p.event_id, p.values()) for p in patches]
        )
        for state in states:
            old = previous.get(state.event_id)  # type: ignore[call-overload]
            self.feed.publish(
                TABLE_ACTIVITY_EVENT_STATES,
                "UPDATE" if old is not None else "INSERT",
                new=_state_row(state),
                old=old,
            )
        return states
