import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response

from buildtrack.core.config import settings
from buildtrack.routers import (
    activity_event_states,
    activity_events,
    notification_rules,
    notifications,
    realtime,
    session,
)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


configure_logging()

OPENAPI_TAGS = [
    {"name": "Auth", "description": "Identity of the signed-in user."},
    {"name": "Activity", "description": "System-wide activity log (admin only)."},
    {"name": "Activity State", "description": "Per-user read and archive state for activity events."},
    {"name": "Notifications", "description": "Per-user app notifications."},
    {"name": "Notification Rules", "description": "Per-user notification type toggles."},
    {"name": "Realtime", "description": "Server-Sent Events stream of row changes."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Activity and notification delivery for the BuildTrack construction dashboard: "
        "activity log, per-user read/archive state, notification rules and a realtime "
        "change feed."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def options_handler(request: Request, call_next):  # type: ignore[no-untyped-def]
    if request.method == "OPTIONS":
        origin = request.headers.get("origin", "*")
        return Response(
            status_code=200,
            headers={
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Allow-Methods": "*",
                "Access-Control-Allow-Headers": "*",
                "Access-Control-Allow-Credentials": "true",
                "Access-Control-Max-Age": "86400",
            },
        )
    return await call_next(request)


app.include_router(session.router, prefix="/v1/auth", tags=["Auth"])
app.include_router(activity_events.router, prefix="/v1/activity_events", tags=["Activity"])
app.include_router(
    activity_event_states.router,
    prefix="/v1/activity_event_states",
    tags=["Activity State"],
)
app.include_router(notifications.router, prefix="/v1/notifications", tags=["Notifications"])
app.include_router(
    notification_rules.router,
    prefix="/v1/notification_rules",
    tags=["Notification Rules"],
)
app.include_router(realtime.router, prefix="/v1/realtime", tags=["Realtime"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
