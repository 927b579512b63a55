"""ActivityEventState model - per-user read/archive overlay on activity events."""

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint, func

from buildtrack.core.database import Base
from buildtrack.models.shared import UUIDType, generate_uuid


class ActivityEventState(Base):
    __tablename__ = "activity_event_states"
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_activity_event_states_user_event"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, index=True)
    event_id = Column(
        UUIDType,
        ForeignKey("activity_events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    read_at = Column(DateTime(timezone=True), nullable=True)
    archived_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
