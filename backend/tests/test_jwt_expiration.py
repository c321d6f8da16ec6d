"""Tests for JWT token expiration handling.

Expired, tampered or mistyped tokens must surface as 401 responses, which
the frontend treats as a signal to log in again.
"""

import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException, status
from jose import jwt

from app.api.deps import get_admin_user, get_current_user, get_optional_user
from app.core.config import settings
from app.core.security import create_access_token, create_refresh_token, verify_token


def expired_access_token(user_id: str) -> str:
    """Access token that expired an hour ago."""
    now = datetime.now(UTC)
    return jwt.encode(
        {"sub": user_id, "type": "access", "exp": now - timedelta(hours=1), "iat": now - timedelta(hours=2)},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def bearer(token: str) -> MagicMock:
    credentials = MagicMock()
    credentials.credentials = token
    return credentials


def db_returning(user) -> AsyncMock:
    mock_db = AsyncMock()
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = user
    mock_db.execute.return_value = mock_result
    return mock_db


class TestJWTExpiration:
    """Token verification."""

    def test_custom_expiration(self):
        user_id = str(uuid.uuid4())
        payload = verify_token(create_access_token(subject=user_id, expires_delta=timedelta(hours=1)))

        assert payload is not None
        assert payload["sub"] == user_id
        assert payload["type"] == "access"

    def test_expired_token_returns_none(self):
        """
        **Feature: session-expiration-fix**

        verify_token returning None is what turns into a 401.
        """
        assert verify_token(expired_access_token(str(uuid.uuid4()))) is None

    def test_token_expiring_soon_still_valid(self):
        token = create_access_token(subject="someone", expires_delta=timedelta(minutes=1))
        assert verify_token(token)["sub"] == "someone"

    def test_invalid_token_returns_none(self):
        assert verify_token("invalid.token.here") is None

    def test_tampered_token_returns_none(self):
        header, body, signature = create_access_token(subject=str(uuid.uuid4())).split(".")
        assert verify_token(".".join([header, body + "tampered", signature])) is None

    def test_extra_claims_are_kept(self):
        token = create_access_token(subject="someone", additional_claims={"role": "admin"})
        assert verify_token(token)["role"] == "admin"


class TestGetCurrentUserWithExpiredToken:
    """get_current_user rejections."""

    @pytest.mark.asyncio
    async def test_expired_token_raises_401(self):
        """
        **Feature: session-expiration-fix**
        """
        mock_db = AsyncMock()

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(credentials=bearer(expired_access_token(str(uuid.uuid4()))), db=mock_db)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert "Invalid or expired token" in exc_info.value.detail
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_valid_token_with_nonexistent_user_raises_401(self):
        token = create_access_token(subject=str(uuid.uuid4()))

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(credentials=bearer(token), db=db_returning(None))

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert "User not found" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_refresh_token_used_as_access_raises_401(self):
        token = create_refresh_token(subject=str(uuid.uuid4()))

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(credentials=bearer(token), db=AsyncMock())

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert "Invalid token type" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_non_uuid_subject_raises_401(self):
        token = create_access_token(subject="not-a-uuid")

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(credentials=bearer(token), db=AsyncMock())

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_valid_token_returns_user(self):
        user = MagicMock()
        user.is_active = True
        token = create_access_token(subject=str(uuid.uuid4()))

        assert await get_current_user(credentials=bearer(token), db=db_returning(user)) is user


class TestAccountState:
    """Disabled accounts, anonymous callers and admins."""

    @pytest.mark.asyncio
    async def test_disabled_account_raises_403(self):
        user = MagicMock()
        user.is_active = False
        token = create_access_token(subject=str(uuid.uuid4()))

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(credentials=bearer(token), db=db_returning(user))

        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_missing_credentials_raise_401(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(credentials=None, db=AsyncMock())

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    @pytest.mark.asyncio
    async def test_optional_user_is_none_without_credentials(self):
        mock_db = AsyncMock()
        assert await get_optional_user(credentials=None, db=mock_db) is None
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_optional_user_still_rejects_bad_tokens(self):
        with pytest.raises(HTTPException):
            await get_optional_user(credentials=bearer("garbage"), db=AsyncMock())

    @pytest.mark.asyncio
    async def test_non_admin_rejected(self):
        user = MagicMock()
        user.is_admin = False

        with pytest.raises(HTTPException) as exc_info:
            await get_admin_user(current_user=user)

        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN


class TestTokenLifetimeConfiguration:
    """Configured token lifetimes."""

    def test_access_token_lifetime_is_one_hour(self):
        assert settings.jwt_access_token_expire_minutes == 60

    def test_refresh_token_lifetime_is_7_days(self):
        assert settings.jwt_refresh_token_expire_days == 7

    def test_created_token_has_correct_expiration(self):
        payload = verify_token(create_access_token(subject=str(uuid.uuid4())))
        assert payload is not None

        lifetime = payload["exp"] - payload["iat"]
        # 5 second tolerance for test execution time
        assert abs(lifetime - settings.jwt_access_token_expire_minutes * 60) < 5

    def test_refresh_tokens_are_distinct(self):
        """Two refresh tokens issued back to back never collide."""
        user_id = str(uuid.uuid4())
        first = create_refresh_token(subject=user_id)
        second = create_refresh_token(subject=user_id)

        assert first != second
        assert verify_token(first)["type"] == "refresh"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
