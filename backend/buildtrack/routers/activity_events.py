"""Activity event API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from buildtrack.core.auth import require_admin, require_user
from buildtrack.core.config import settings
from buildtrack.core.database import get_db
from buildtrack.repositories.activity_event_repository import ActivityEventRepository
from buildtrack.schemas.activity_event import ActivityEventCreate, ActivityEventResponse
from buildtrack.schemas.session import SessionResponse
from buildtrack.services.activity_service import ActivityService

router = APIRouter()


@router.get(
    "/",
    response_model=list[ActivityEventResponse],
    summary="List recent activity events",
    responses={401: {"description": "Not authenticated"}},
)
async def list_activity_events(
    limit: int = Query(default=settings.ACTIVITY_FETCH_LIMIT, ge=1, le=1000),
    db: Session = Depends(get_db),
    user: SessionResponse = Depends(require_user),
) -> list[ActivityEventResponse]:
    """Newest events first. Only admins can see the activity log."""
    if not user.is_admin:
        return []
    repo = ActivityEventRepository(db)
    return [ActivityEventResponse.model_validate(e) for e in repo.get_recent(limit=limit)]


@router.post(
    "/",
    response_model=ActivityEventResponse,
    status_code=201,
    summary="Log an activity event",
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Admin role required"},
    },
)
async def log_activity_event(
    data: ActivityEventCreate,
    db: Session = Depends(get_db),
    user: SessionResponse = Depends(require_admin),
) -> ActivityEventResponse:
    """Append an event to the activity log and push it to live subscribers."""
    service = ActivityService(db)
    event = service.log_activity_event(
        action=data.action,
        entity_table=data.entity_table,
        entity_id=data.entity_id,
        message=data.message,
        actor_user_id=data.actor_user_id or user.user_id,
        metadata=data.metadata,
        keep_last=data.keep_last,
    )
    return ActivityEventResponse.model_validate(event)
