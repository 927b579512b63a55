"""Repository for UserRole operations."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from buildtrack.models.shared import generate_uuid
from buildtrack.models.user_role import AppRole, UserRole


class UserRoleRepository:
    def __init__(self, db: Session):
        self.db = db

    def has_role(self, user_id: UUID, role: str = AppRole.ADMIN.value) -> bool:
        return (
            self.db.query(UserRole)
            .filter(UserRole.user_id == user_id, UserRole.role == role)
            .first()
            is not None
        )

    def get_user_ids(self, role: str = AppRole.ADMIN.value) -> list[UUID]:
        rows = (
            self.db.query(UserRole.user_id)
            .filter(UserRole.role == role)
            .order_by(UserRole.created_at.asc())
            .all()
        )
        return [row[0] for row in rows]

    def grant(self, user_id: UUID, role: str = AppRole.ADMIN.value) -> UserRole:
        existing = (
            self.db.query(UserRole)
            .filter(UserRole.user_id == user_id, UserRole.role == role)
            .first()
        )
        if existing is not None:
            return existing
        user_role = UserRole(id=generate_uuid(), user_id=user_id, role=role)
        self.db.add(user_role)
        self.db.commit()
        self.db.refresh(user_role)
        return user_role
