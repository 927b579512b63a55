"""Repository for per-user activity event state."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from buildtrack.models.activity_event_state import ActivityEventState
from buildtrack.models.shared import generate_uuid

STATE_FIELDS = ("read_at", "archived_at")


class ActivityEventStateRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: UUID, event_id: UUID) -> ActivityEventState | None:
        return (
            self.db.query(ActivityEventState)
            .filter(
                ActivityEventState.user_id == user_id,
                ActivityEventState.event_id == event_id,
            )
            .first()
        )

    def get_for_events(self, user_id: UUID, event_ids: list[UUID]) -> list[ActivityEventState]:
        if not event_ids:
            return []
        return (
            self.db.query(ActivityEventState)
            .filter(
                ActivityEventState.user_id == user_id,
                ActivityEventState.event_id.in_(event_ids),
            )
            .all()
        )

    def upsert_many(
        self,
        user_id: UUID,
        patches: list[tuple[UUID, dict[str, datetime | None]]],
    ) -> list[ActivityEventState]:
        """Insert or update one row per (user_id, event_id).

        Only the keys present in each patch are written; the other
        timestamp is left as it was.
        """
        states: dict[UUID, ActivityEventState] = {}
        for event_id, values in patches:
            state = states.get(event_id) or self.get(user_id, event_id)
            if state is None:
                state = ActivityEventState(
                    id=generate_uuid(),
                    user_id=user_id,
                    event_id=event_id,
                )
                self.db.add(state)
            for field in STATE_FIELDS:
                if field in values:
                    setattr(state, field, values[field])
            states[event_id] = state
        self.db.commit()
        for state in states.values():
            self.db.refresh(state)
        return list(states.values())

    def upsert(
        self, user_id: UUID, event_id: UUID, values: dict[str, Any]
    ) -> ActivityEventState:
        return self.upsert_many(user_id, [(event_id, values)])[0]
