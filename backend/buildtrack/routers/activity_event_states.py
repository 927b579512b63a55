"""Per-user activity event state endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from buildtrack.core.auth import require_user
from buildtrack.core.database import get_db
from buildtrack.schemas.activity_event import (
    ActivityEventStatePatch,
    ActivityEventStateResponse,
)
from buildtrack.schemas.session import SessionResponse
from buildtrack.services.activity_service import ActivityService

router = APIRouter()


@router.get(
    "/",
    response_model=list[ActivityEventStateResponse],
    summary="List my state rows for a set of events",
    responses={401: {"description": "Not authenticated"}},
)
async def list_activity_event_states(
    event_id: list[UUID] = Query(default=[]),
    db: Session = Depends(get_db),
    user: SessionResponse = Depends(require_user),
) -> list[ActivityEventStateResponse]:
    """Return the caller's rows for exactly the given event ids (empty list for none)."""
    service = ActivityService(db)
    return [
        ActivityEventStateResponse.model_validate(s)
        for s in service.get_states(user.user_id, event_id)
    ]


@router.post(
    "/",
    response_model=list[ActivityEventStateResponse],
    summary="Upsert my state rows",
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "Activity event not found"},
    },
)
async def upsert_activity_event_states(
    patches: list[ActivityEventStatePatch],
    db: Session = Depends(get_db),
    user: SessionResponse = Depends(require_user),
) -> list[ActivityEventStateResponse]:
    """Insert or update rows keyed on (user, event); omitted fields are kept."""
    service = ActivityService(db)
    try:
        states = service.upsert_states(user.user_id, patches)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    return [ActivityEventStateResponse.model_validate(s) for s in states]
