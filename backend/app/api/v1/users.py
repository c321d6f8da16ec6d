"""User profile endpoints."""

from fastapi import APIRouter, HTTPException, status

from app.api.deps import CurrentUser
from app.core.security import get_password_hash, verify_password
from app.schemas.auth import ChangePasswordRequest
from app.schemas.common import SuccessResponse
from app.schemas.user import AvatarUpdate, ProfileUpdate, UserResponse

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_profile(current_user: CurrentUser) -> UserResponse:
    """Get current authenticated user."""
    return UserResponse.model_validate(current_user)


@router.put("/me/profile", response_model=UserResponse)
async def update_profile(update: ProfileUpdate, current_user: CurrentUser) -> UserResponse:
    """Update profile fields; address and social media merge into existing values."""
    changes = update.model_dump(exclude_unset=True)

    for key in ("address", "social_media"):
        if key in changes:
            merged = dict(getattr(current_user, key) or {})
            merged.update(changes.pop(key) or {})
            # Assign a new dict so the JSONB change is tracked
            setattr(current_user, key, merged)

    for key, value in changes.items():
        setattr(current_user, key, value)

    return UserResponse.model_validate(current_user)


@router.put("/me/avatar", response_model=UserResponse)
async def update_avatar(update: AvatarUpdate, current_user: CurrentUser) -> UserResponse:
    current_user.avatar_url = update.avatar_url
    return UserResponse.model_validate(current_user)


@router.put("/me/password", response_model=SuccessResponse)
async def change_password(payload: ChangePasswordRequest, current_user: CurrentUser) -> SuccessResponse:
    """Change password after confirming the current one."""
    if not verify_password(payload.current_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )
    current_user.password_hash = get_password_hash(payload.new_password)
    current_user.refresh_token_hash = None
    return SuccessResponse(message="Password updated")
