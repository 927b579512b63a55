"""Realtime change feed over Server-Sent Events.

Events: ``data: {"type": "INSERT", "table": "...", "new": {...}, "old": null}``;
idle connections receive ``: keep-alive`` comments.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from buildtrack.core.auth import require_user
from buildtrack.core.config import settings
from buildtrack.core.constants import REALTIME_TABLES, TABLE_ACTIVITY_EVENTS
from buildtrack.schemas.realtime import ChangeMessage
from buildtrack.schemas.session import SessionResponse
from buildtrack.services.realtime import Subscription, change_feed

router = APIRouter()
logger = logging.getLogger(__name__)

# Tables whose rows belong to a single user; subscriptions are pinned to the caller
USER_SCOPED_TABLES = REALTIME_TABLES - {TABLE_ACTIVITY_EVENTS}


def _sse_line(message: ChangeMessage) -> bytes:
    """Single SSE event line as bytes so proxies/clients stream immediately."""
    return f"data: {json.dumps(message.model_dump(mode='json'))}\n\n".encode()


async def _stream_changes(
    request: Request,
    subscription: Subscription,
    visible: bool = True,
    keepalive: float | None = None,
) -> AsyncIterator[bytes]:
    interval = keepalive or settings.REALTIME_KEEPALIVE_SECONDS
    try:
        while not await request.is_disconnected():
            try:
                message = await asyncio.wait_for(subscription.get(), timeout=interval)
            except TimeoutError:
                yield b": keep-alive\n\n"
                continue
            if visible:
                yield _sse_line(message)
    finally:
        change_feed.unsubscribe(subscription)


@router.get(
    "/{table}",
    summary="Subscribe to row changes on a table",
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "Table not available for realtime"},
    },
)
async def subscribe(
    table: str,
    request: Request,
    user: SessionResponse = Depends(require_user),
) -> StreamingResponse:
    if table not in REALTIME_TABLES:
        raise HTTPException(status_code=404, detail=f"Table '{table}' is not available")

    filters: dict[str, str] = {}
    if table in USER_SCOPED_TABLES:
        filters["user_id"] = str(user.user_id)
    # Non-admins may hold the channel open but never see activity rows
    visible = table != TABLE_ACTIVITY_EVENTS or user.is_admin

    subscription = change_feed.subscribe(table, filters)
    logger.info("Realtime channel opened: %s for %s", table, user.user_id)
    return StreamingResponse(
        _stream_changes(request, subscription, visible=visible),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
