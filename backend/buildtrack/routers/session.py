"""Session identity endpoint."""

from fastapi import APIRouter, Depends

from buildtrack.core.auth import get_current_user
from buildtrack.schemas.session import SessionResponse

router = APIRouter()


@router.get(
    "/session",
    response_model=SessionResponse | None,
    summary="Get current session",
    responses={401: {"description": "Invalid or expired session token"}},
)
async def get_session(
    user: SessionResponse | None = Depends(get_current_user),
) -> SessionResponse | None:
    """Return the signed-in identity, or null when signed out."""
    return user
