import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from buildtrack.core.database import get_db
from buildtrack.repositories.user_role_repository import UserRoleRepository
from buildtrack.schemas.session import SessionResponse
from buildtrack.services.auth_service import AuthService


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> SessionResponse | None:
    """Resolve the signed-in user from the bearer token.

    A missing Authorization header means "signed out" and yields None;
    a malformed, expired or forged token is rejected with 401.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    token = auth_header[7:]
    if not token:
        raise HTTPException(status_code=401, detail="Session token is required")

    try:
        user_id, email = AuthService.verify_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Session has expired") from None
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid session token") from None

    return SessionResponse(
        user_id=user_id,
        email=email,
        is_admin=UserRoleRepository(db).has_role(user_id),
    )


def require_user(
    user: SessionResponse | None = Depends(get_current_user),
) -> SessionResponse:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_admin(user: SessionResponse = Depends(require_user)) -> SessionResponse:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user
