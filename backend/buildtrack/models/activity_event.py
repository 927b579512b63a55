"""ActivityEvent model - append-only log of changes across the dashboard."""

from sqlalchemy import JSON, Column, DateTime, String, Text, func

from buildtrack.core.database import Base
from buildtrack.models.shared import UUIDType, generate_uuid


class ActivityEvent(Base):
    """An immutable fact: who did what to which record.

    Rows are written by server-side logic only and are visible to admins.
    """

    __tablename__ = "activity_events"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    actor_user_id = Column(UUIDType, nullable=True, index=True)
    action = Column(String(50), nullable=False, index=True)
    entity_table = Column(String(100), nullable=False, index=True)
    entity_id = Column(String(255), nullable=True)
    message = Column(Text, nullable=False)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
