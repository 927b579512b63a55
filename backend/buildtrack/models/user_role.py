"""UserRole model - application roles granted to authenticated users."""

from enum import Enum

from sqlalchemy import Column, DateTime, String, UniqueConstraint, func

from buildtrack.core.database import Base
from buildtrack.models.shared import UUIDType, generate_uuid


class AppRole(str, Enum):
    ADMIN = "admin"


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, index=True)
    role = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
