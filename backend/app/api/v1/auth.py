"""Authentication endpoints."""

import logging
import uuid
from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy import or_, select

from app.api.deps import CurrentUser, DbSession
from app.core.config import settings
from app.core.rate_limit import auth_rate_limit
from app.core.security import (
    create_access_token,
    create_refresh_token,
    generate_reset_token,
    get_password_hash,
    hash_token,
    token_matches,
    verify_password,
    verify_token,
)
from app.models.user import User
from app.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenPair,
    UserInfo,
)
from app.schemas.common import SuccessResponse
from app.schemas.user import UserResponse
from app.workers.notifications import send_password_reset_email

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_tokens(user: User) -> TokenPair:
    """Create a token pair and store the refresh token digest (rotation)."""
    access_token = create_access_token(str(user.id), additional_claims={"role": user.role.value})
    refresh_token = create_refresh_token(str(user.id))
    user.refresh_token_hash = hash_token(refresh_token)
    return TokenPair(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


def _auth_response(user: User, tokens: TokenPair) -> AuthResponse:
    return AuthResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
        user=UserInfo.model_validate(user),
    )


def register_failed_login(user: User, now: datetime) -> int:
    """Count a failed attempt, locking the account at the limit.

    Returns the attempts left before lockout (0 when now locked).
    """
    user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
    if user.failed_login_attempts >= settings.max_login_attempts:
        user.locked_until = now + timedelta(minutes=settings.account_lock_minutes)
        user.failed_login_attempts = 0
        return 0
    return settings.max_login_attempts - user.failed_login_attempts


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, request: Request, db: DbSession) -> AuthResponse:
    """Create an account and sign in."""
    auth_rate_limit(request)

    result = await db.execute(
        select(User).where(or_(User.email == payload.email, User.username == payload.username))
    )
    existing = result.scalars().first()
    if existing is not None:
        field = "Email" if existing.email == payload.email else "Username"
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{field} is already registered",
        )

    user = User(
        username=payload.username,
        email=payload.email,
        password_hash=get_password_hash(payload.password),
        failed_login_attempts=0,
        address={},
        social_media={},
    )
    db.add(user)
    await db.flush()

    tokens = _issue_tokens(user)
    logger.info(f"Registered user {user.username}")
    return _auth_response(user, tokens)


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest, request: Request, db: DbSession) -> AuthResponse:
    """Sign in with email and password."""
    auth_rate_limit(request)

    result = await db.execute(select(User).where(User.email == payload.email))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    now = datetime.now(UTC)
    if user.is_locked(now):
        raise HTTPException(
            status_code=status.HTTP_423_LOCKED,
            detail=f"Account is locked until {user.locked_until.isoformat()}",
        )

    if not verify_password(payload.password, user.password_hash):
        attempts_left = register_failed_login(user, now)
        # Persist the counter even though the request fails
        await db.commit()
        if attempts_left == 0:
            logger.warning(f"Locked account {user.username} after repeated failed logins")
            raise HTTPException(
                status_code=status.HTTP_423_LOCKED,
                detail=f"Too many failed attempts. Account locked for {settings.account_lock_minutes} minutes",
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid email or password. {attempts_left} attempts left",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )

    user.failed_login_attempts = 0
    user.locked_until = None
    user.last_login = now
    tokens = _issue_tokens(user)
    return _auth_response(user, tokens)


@router.post("/refresh", response_model=TokenPair)
async def refresh_token(payload: RefreshRequest, db: DbSession) -> TokenPair:
    """Exchange a refresh token for a new token pair."""
    claims = verify_token(payload.refresh_token)
    if claims is None or claims.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    try:
        user_id = uuid.UUID(str(claims.get("sub")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not token_matches(payload.refresh_token, user.refresh_token_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )

    return _issue_tokens(user)


@router.post("/logout", response_model=SuccessResponse)
async def logout(current_user: CurrentUser) -> SuccessResponse:
    """Invalidate the stored refresh token."""
    current_user.refresh_token_hash = None
    return SuccessResponse(message="Logged out")


@router.post("/forgot-password", response_model=SuccessResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    request: Request,
    db: DbSession,
) -> SuccessResponse:
    """Email a reset link. Responds the same whether or not the account exists."""
    auth_rate_limit(request)

    result = await db.execute(select(User).where(User.email == payload.email.lower()))
    user = result.scalar_one_or_none()
    if user is not None and user.is_active:
        token = generate_reset_token()
        user.reset_token_hash = hash_token(token)
        user.reset_token_expires_at = datetime.now(UTC) + timedelta(
            minutes=settings.password_reset_expire_minutes
        )
        await db.commit()
        send_password_reset_email.delay(user.email, token)
        logger.info(f"Password reset requested for user {user.id}")

    return SuccessResponse(message="If the email is registered, a reset link has been sent")


@router.post("/reset-password/{token}", response_model=SuccessResponse)
async def reset_password(token: str, payload: ResetPasswordRequest, db: DbSession) -> SuccessResponse:
    """Set a new password using a reset token."""
    result = await db.execute(
        select(User).where(
            User.reset_token_hash == hash_token(token),
            User.reset_token_expires_at > datetime.now(UTC),
        )
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Reset token is invalid or has expired",
        )

    user.password_hash = get_password_hash(payload.password)
    user.reset_token_hash = None
    user.reset_token_expires_at = None
    user.failed_login_attempts = 0
    user.locked_until = None
    # Sessions issued with the old password end here
    user.refresh_token_hash = None
    return SuccessResponse(message="Password has been reset")


@router.get("/me", response_model=UserResponse)
async def me(current_user: CurrentUser) -> UserResponse:
    """Current authenticated user."""
    return UserResponse.model_validate(current_user)
