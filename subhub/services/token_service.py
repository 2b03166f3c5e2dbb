"""Bearer token issuing and verification."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ..domain.models import AuthenticatedUser

logger = logging.getLogger(__name__)


class TokenService:
    """Issues and verifies the JWTs that identify API callers."""

    def __init__(
        self,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        jwt_expiration_hours: int = 24,
    ):
        if not jwt_secret:
            raise RuntimeError("JWT_SECRET is not configured.")
        if jwt_secret == "change-me":
            logger.warning("JWT_SECRET is using the default value. Configure a secure secret in production.")
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.jwt_expiration_hours = jwt_expiration_hours

    def create_token(
        self,
        user_id: str,
        email: Optional[str] = None,
        is_admin: bool = False,
    ) -> str:
        """
        Create JWT token for a user.

        Args:
            user_id: User ID
            email: Optional user email
            is_admin: Whether the caller may run administrative operations

        Returns:
            JWT token string
        """
        now = datetime.now(timezone.utc)
        payload = {
            "user_id": str(user_id),
            "email": email,
            "is_admin": is_admin,
            "exp": now + timedelta(hours=self.jwt_expiration_hours),
            "iat": now,
        }

        return jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)

    def verify_token(self, token: str) -> Optional[AuthenticatedUser]:
        """
        Verify and decode JWT token.

        Args:
            token: JWT token string

        Returns:
            AuthenticatedUser if valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token, self.jwt_secret, algorithms=[self.jwt_algorithm]
            )
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None

        user_id = payload.get("user_id")
        if not user_id:
            return None

        return AuthenticatedUser(
            user_id=str(user_id),
            email=payload.get("email"),
            is_admin=bool(payload.get("is_admin", False)),
        )
