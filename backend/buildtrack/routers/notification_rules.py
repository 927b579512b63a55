"""Notification rule endpoints."""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from buildtrack.core.auth import require_user
from buildtrack.core.database import get_db
from buildtrack.repositories.notification_rule_repository import NotificationRuleRepository
from buildtrack.schemas.notification_rule import NotificationRuleResponse, NotificationRuleUpdate
from buildtrack.schemas.session import SessionResponse
from buildtrack.services.notification_service import NotificationService

router = APIRouter()


@router.get(
    "/",
    response_model=list[NotificationRuleResponse],
    summary="List my notification rules",
    responses={401: {"description": "Not authenticated"}},
)
async def list_notification_rules(
    db: Session = Depends(get_db),
    user: SessionResponse = Depends(require_user),
) -> list[NotificationRuleResponse]:
    """Only stored rules are returned; a type without a row is enabled."""
    repo = NotificationRuleRepository(db)
    return [NotificationRuleResponse.model_validate(r) for r in repo.get_all(user.user_id)]


@router.put(
    "/{rule_type}",
    response_model=NotificationRuleResponse,
    summary="Enable or disable a notification type",
    responses={401: {"description": "Not authenticated"}},
)
async def upsert_notification_rule(
    data: NotificationRuleUpdate,
    rule_type: str = Path(..., min_length=1, max_length=50),
    db: Session = Depends(get_db),
    user: SessionResponse = Depends(require_user),
) -> NotificationRuleResponse:
    """Create or update the rule; an omitted ``config`` keeps the stored one."""
    service = NotificationService(db)
    rule = service.set_rule(user.user_id, rule_type, data.enabled, data.config)
    return NotificationRuleResponse.model_validate(rule)
