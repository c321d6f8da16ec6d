"""Authentication schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.security import password_strength_errors
from app.models.user import UserRole
from app.schemas.common import BaseSchema


def _check_strength(password: str) -> str:
    errors = password_strength_errors(password)
    if errors:
        raise ValueError("; ".join(errors))
    return password


class RegisterRequest(BaseModel):
    """Account registration request."""

    username: str = Field(min_length=3, max_length=50, pattern=r"^[\w.-]+$")
    email: EmailStr
    password: str = Field(max_length=72)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return _check_strength(v)


class LoginRequest(BaseModel):
    """Email and password login."""

    email: EmailStr
    password: str = Field(max_length=72)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class RefreshRequest(BaseModel):
    """Refresh token exchange."""

    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str = Field(max_length=72)

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return _check_strength(v)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(max_length=72)
    new_password: str = Field(max_length=72)

    @field_validator("new_password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return _check_strength(v)


class UserInfo(BaseSchema):
    """User info in auth response."""

    id: UUID
    username: str
    email: EmailStr
    role: UserRole
    avatar_url: str | None = None


class AuthResponse(BaseModel):
    """Authentication response with tokens."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserInfo


class TokenPair(BaseModel):
    """Token refresh response."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
