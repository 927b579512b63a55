"""AppNotification model - per-user notifications with their own read/archive state."""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, String, Text, UniqueConstraint, func

from buildtrack.core.database import Base
from buildtrack.models.shared import UUIDType, generate_uuid


class NotificationSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AppNotification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        UniqueConstraint("user_id", "dedupe_key", name="uq_notifications_user_dedupe_key"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, index=True)
    type = Column(String(50), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=True)
    severity = Column(String(20), nullable=False, default=NotificationSeverity.INFO.value)
    entity_table = Column(String(100), nullable=True)
    entity_id = Column(String(255), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    dedupe_key = Column(String(255), nullable=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    archived_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
