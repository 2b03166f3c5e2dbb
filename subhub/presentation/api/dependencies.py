from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...core.dependencies import get_token_service
from ...domain.exceptions import AuthenticationError, AuthorizationError
from ...domain.models import AuthenticatedUser, RequestInfo
from ...services.token_service import TokenService

_bearer_scheme = HTTPBearer(auto_error=False)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    token_service: TokenService = Depends(get_token_service),
) -> Optional[AuthenticatedUser]:
    """Resolve the caller when a valid bearer token is present."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return token_service.verify_token(credentials.credentials)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    token_service: TokenService = Depends(get_token_service),
) -> AuthenticatedUser:
    """Dependency to get current authenticated user."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Invalid authorization header")

    user = token_service.verify_token(credentials.credentials)
    if user is None:
        raise AuthenticationError("Invalid or expired token")
    return user


def require_admin_user(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
    if not user.is_admin:
        raise AuthorizationError("Administrator access required")
    return user


def get_request_info(request: Request) -> RequestInfo:
    """Extract caller IP and user agent for the audit trail."""
    forwarded = request.headers.get("x-forwarded-for")
    ip_address = forwarded.split(",")[0].strip() if forwarded else None
    if not ip_address:
        ip_address = request.headers.get("x-real-ip") or None
    return RequestInfo(
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent") or None,
    )
