"""NotificationRule model - per-user, per-type delivery toggle."""

from sqlalchemy import JSON, Boolean, Column, DateTime, String, UniqueConstraint, func

from buildtrack.core.database import Base
from buildtrack.models.shared import UUIDType, generate_uuid


class NotificationRule(Base):
    """A missing row means the notification type is enabled."""

    __tablename__ = "notification_rules"
    __table_args__ = (
        UniqueConstraint("user_id", "type", name="uq_notification_rules_user_type"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, index=True)
    type = Column(String(50), nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)
    config = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
