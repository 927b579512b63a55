from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt

from buildtrack.core.config import settings

TOKEN_TYPE = "session"


class AuthService:
    """Issues and verifies the bearer tokens that identify a signed-in user."""

    @staticmethod
    def generate_token(user_id: UUID, email: str | None = None) -> str:
        """Generate a session JWT valid for ``AUTH_TOKEN_TTL_HOURS``."""
        payload = {
            "sub": str(user_id),
            "email": email,
            "type": TOKEN_TYPE,
            "exp": datetime.now(UTC) + timedelta(hours=settings.AUTH_TOKEN_TTL_HOURS),
        }
        return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm="HS256")

    @staticmethod
    def verify_token(token: str) -> tuple[UUID, str | None]:
        """Decode and validate a session JWT.

        Returns (user_id, email).
        Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError on failure.
        """
        payload = jwt.decode(token, settings.AUTH_JWT_SECRET, algorithms=["HS256"])
        if payload.get("type") != TOKEN_TYPE:
            raise jwt.InvalidTokenError("Invalid token type")
        return UUID(payload["sub"]), payload.get("email")
