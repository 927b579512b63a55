"""Repository for ActivityEvent operations."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from buildtrack.models.activity_event import ActivityEvent
from buildtrack.models.activity_event_state import ActivityEventState
from buildtrack.models.shared import generate_uuid, utc_now


class ActivityEventRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        action: str,
        entity_table: str,
        message: str,
        entity_id: str | None = None,
        actor_user_id: UUID | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ActivityEvent:
        event = ActivityEvent(
            id=generate_uuid(),
            actor_user_id=actor_user_id,
            action=action,
            entity_table=entity_table,
            entity_id=entity_id,
            message=message,
            metadata_=metadata or {},
            created_at=utc_now(),
        )
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        return event

    def get_by_id(self, event_id: UUID) -> ActivityEvent | None:
        return self.db.query(ActivityEvent).filter(ActivityEvent.id == event_id).first()

    def get_existing_ids(self, event_ids: list[UUID]) -> set[UUID]:
        if not event_ids:
            return set()
        rows = (
            self.db.query(ActivityEvent.id)
            .filter(ActivityEvent.id.in_(event_ids))
            .all()
        )
        return {row[0] for row in rows}

    def get_recent(self, limit: int = 200) -> list[ActivityEvent]:
        """Newest first."""
        return (
            self.db.query(ActivityEvent)
            .order_by(ActivityEvent.created_at.desc(), ActivityEvent.id.desc())
            .limit(limit)
            .all()
        )

    def prune(self, keep_last: int) -> int:
        """Delete everything but the newest ``keep_last`` events."""
        stale_ids = [
            row[0]
            for row in self.db.query(ActivityEvent.id)
            .order_by(ActivityEvent.created_at.desc(), ActivityEvent.id.desc())
            .offset(keep_last)
            .all()
        ]
        if not stale_ids:
            return 0
        # SQLite does not enforce the cascade unless foreign keys are switched on
        self.db.query(ActivityEventState).filter(
            ActivityEventState.event_id.in_(stale_ids)
        ).delete(synchronize_session=False)
        count = (
            self.db.query(ActivityEvent)
            .filter(ActivityEvent.id.in_(stale_ids))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return count
