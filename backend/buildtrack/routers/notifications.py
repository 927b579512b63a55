"""Per-user app notification endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from buildtrack.core.auth import require_admin, require_user
from buildtrack.core.database import get_db
from buildtrack.schemas.notification import (
    AdminNotificationCreate,
    AdminNotificationResult,
    AppNotificationBulkPatch,
    AppNotificationResponse,
    AppNotificationStatePatch,
)
from buildtrack.schemas.session import SessionResponse
from buildtrack.services.notification_service import NotificationService

router = APIRouter()


@router.get(
    "/",
    response_model=list[AppNotificationResponse],
    summary="List my notifications",
    responses={401: {"description": "Not authenticated"}},
)
async def list_notifications(
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    user: SessionResponse = Depends(require_user),
) -> list[AppNotificationResponse]:
    """Newest first."""
    service = NotificationService(db)
    return [
        AppNotificationResponse.model_validate(n)
        for n in service.list_for_user(user.user_id, limit=limit)
    ]


@router.post(
    "/bulk_state",
    response_model=list[AppNotificationResponse],
    summary="Patch read/archive state on several notifications",
    responses={401: {"description": "Not authenticated"}},
)
async def bulk_update_notification_state(
    data: AppNotificationBulkPatch,
    db: Session = Depends(get_db),
    user: SessionResponse = Depends(require_user),
) -> list[AppNotificationResponse]:
    service = NotificationService(db)
    rows = service.update_state(user.user_id, data.ids, data.values())
    return [AppNotificationResponse.model_validate(n) for n in rows]


@router.patch(
    "/{notification_id}",
    response_model=AppNotificationResponse,
    summary="Patch read/archive state on a notification",
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "Notification not found"},
    },
)
async def update_notification_state(
    notification_id: UUID,
    data: AppNotificationStatePatch,
    db: Session = Depends(get_db),
    user: SessionResponse = Depends(require_user),
) -> AppNotificationResponse:
    service = NotificationService(db)
    rows = service.update_state(user.user_id, [notification_id], data.values())
    if not rows:
        raise HTTPException(status_code=404, detail="Notification not found")
    return AppNotificationResponse.model_validate(rows[0])


@router.post(
    "/admin",
    response_model=AdminNotificationResult,
    status_code=201,
    summary="Send a notification to every admin",
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Admin role required"},
    },
)
async def create_admin_notification(
    data: AdminNotificationCreate,
    db: Session = Depends(get_db),
    _admin: SessionResponse = Depends(require_admin),
) -> AdminNotificationResult:
    """Fan out to admins, honoring their rules and the dedupe key."""
    service = NotificationService(db)
    created = service.create_admin_notification(
        type=data.type,
        title=data.title,
        body=data.body,
        severity=data.severity.value,
        entity_table=data.entity_table,
        entity_id=data.entity_id,
        metadata=data.metadata,
        dedupe_key=data.dedupe_key,
    )
    return AdminNotificationResult(created=len(created))
