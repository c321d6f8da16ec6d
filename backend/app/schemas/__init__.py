"""Pydantic schemas for API requests and responses."""

from app.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, TokenPair
from app.schemas.common import BaseSchema, PaginatedResponse, PaginationMeta, SuccessResponse
from app.schemas.reading import ReadingCreate, ReadingResponse, ReadingUpdate
from app.schemas.user import SettingsResponse, SettingsUpdate, UserResponse

__all__ = [
    "AuthResponse",
    "BaseSchema",
    "LoginRequest",
    "PaginatedResponse",
    "PaginationMeta",
    "ReadingCreate",
    "ReadingResponse",
    "ReadingUpdate",
    "RegisterRequest",
    "SettingsResponse",
    "SettingsUpdate",
    "SuccessResponse",
    "TokenPair",
    "UserResponse",
]
