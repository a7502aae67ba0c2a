"""Authentication API endpoints.

Provides routes for:
- User registration and login
- Current user profile
"""

from fastapi import APIRouter, status

from src.auth.dependencies import AuthServiceDep, CurrentUser
from src.auth.schemas import AuthResponse, LoginRequest, RegisterRequest, UserResponse


router = APIRouter(prefix="/api", tags=["auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    responses={
        400: {"description": "Email already registered"},
        422: {"description": "Validation error"},
    },
)
async def register(
    data: RegisterRequest,
    auth_service: AuthServiceDep,
) -> AuthResponse:
    """Register a new account and return a session token."""
    user = auth_service.register_user(data)
    return auth_service.issue_token(user)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="User login",
    responses={401: {"description": "Invalid credentials"}},
)
async def login(
    data: LoginRequest,
    auth_service: AuthServiceDep,
) -> AuthResponse:
    """Authenticate user and return a session token."""
    user = auth_service.authenticate_user(data.email, data.password)
    return auth_service.issue_token(user)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user",
)
async def me(
    current_user: CurrentUser,
    auth_service: AuthServiceDep,
) -> UserResponse:
    """Get the profile of the signed-in user."""
    user = auth_service.require_user(current_user.id)
    return auth_service.to_response(user)
