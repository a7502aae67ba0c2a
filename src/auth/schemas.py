"""Pydantic schemas for authentication."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from src.auth.models import User
from src.auth.validators import normalize_phone, validate_password, validate_phone


# ==============================================================================
# Request Schemas
# ==============================================================================


class RegisterRequest(BaseModel):
    """User registration request."""

    name: str = Field(..., min_length=2, max_length=100, description="Full name")
    email: EmailStr = Field(..., description="Email address")
    phone: str | None = Field(None, description="Mobile phone number")
    password: str = Field(..., min_length=8, description="Password")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("phone")
    @classmethod
    def validate_phone_format(cls, v: str | None) -> str | None:
        if v is None or v.strip() == "":
            return None
        result = validate_phone(v)
        if not result.valid:
            raise ValueError(result.message or "Invalid phone number")
        return normalize_phone(v)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        result = validate_password(v)
        if not result.valid:
            raise ValueError(result.message or "Invalid password")
        return v


class LoginRequest(BaseModel):
    """User login request."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")


# ==============================================================================
# Response Schemas
# ==============================================================================


class UserResponse(BaseModel):
    """User summary."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str | None = None
    phone: str | None = None
    role: str
    is_guest: bool = False
    created_at: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Create response from User model."""
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            phone=user.phone,
            role=user.role,
            is_guest=user.is_guest,
            created_at=user.created_at,
        )


class AuthResponse(BaseModel):
    """Session token plus the user it was issued for."""

    token: str = Field(..., description="Bearer session token")
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse
