"""FastAPI dependencies for authentication.

Provides dependency injection for:
- AuthService from the application context
- Current user extraction from the bearer session token
- The admin guard
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request
from jose import JWTError
from pydantic import BaseModel

from src.auth.permissions import may_use_admin_endpoints
from src.auth.security import decode_access_token
from src.auth.service import AuthService
from src.core.context import set_user_id
from src.core.exceptions import AuthenticationError, ForbiddenError
from src.core.state import AppContext, get_app_context


class TokenMissingError(AuthenticationError):
    """No bearer token on a protected endpoint."""

    default_code = "TOKEN_MISSING"
    default_message = "Session token not provided"


class InvalidTokenError(AuthenticationError):
    """Bearer token failed validation."""

    default_code = "INVALID_TOKEN"
    default_message = "Invalid or expired session token"


class AdminRequiredError(ForbiddenError):
    """Admin endpoint called by a non-admin."""

    default_code = "ADMIN_REQUIRED"
    default_message = "Admin role required"


class SessionUser(BaseModel):
    """Identity carried by a session token."""

    id: UUID
    email: str
    role: str


def get_auth_service(
    context: Annotated[AppContext, Depends(get_app_context)],
) -> AuthService:
    """Get AuthService instance from the application context."""
    return context.require("auth_service")


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _user_from_token(token: str) -> SessionUser:
    try:
        payload = decode_access_token(token)
        user = SessionUser(
            id=UUID(payload["sub"]),
            email=payload.get("email", ""),
            role=payload.get("role", "user"),
        )
    except (JWTError, ValueError, KeyError) as e:
        raise InvalidTokenError from e

    set_user_id(user.id)
    return user


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> SessionUser:
    """Get current authenticated user from the session token.

    Raises:
        TokenMissingError: If no bearer token is present
        InvalidTokenError: If the token is invalid or expired
    """
    if not token:
        raise TokenMissingError
    return _user_from_token(token)


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> SessionUser | None:
    """Get current user if a token is present.

    A present but invalid token is still rejected with 401.
    """
    if not token:
        return None
    return _user_from_token(token)


async def require_admin(
    user: Annotated[SessionUser, Depends(get_current_user)],
    context: Annotated[AppContext, Depends(get_app_context)],
) -> SessionUser:
    """Admin guard, governed by ``Settings.admin_require_role``."""
    if not may_use_admin_endpoints(user.role, context.settings.admin_require_role):
        raise AdminRequiredError
    return user


CurrentUser = Annotated[SessionUser, Depends(get_current_user)]
OptionalUser = Annotated[SessionUser | None, Depends(get_current_user_optional)]
AdminUser = Annotated[SessionUser, Depends(require_admin)]
