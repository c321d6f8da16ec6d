"""Tests for password rules, token digests and login lockout."""

from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from app.api.v1.auth import register_failed_login
from app.core.config import settings as app_settings
from app.core.security import (
    generate_reset_token,
    get_password_hash,
    hash_token,
    password_strength_errors,
    token_matches,
    verify_password,
)
from app.models.user import User


class TestPasswordStrength:
    """Strength rules."""

    def test_strong_password(self):
        assert password_strength_errors("s3cret!pass") == []

    def test_too_short(self):
        errors = password_strength_errors("a1!")
        assert any("at least 8" in e for e in errors)

    def test_missing_number(self):
        assert password_strength_errors("password!") == ["Password must contain a number"]

    def test_missing_special_character(self):
        assert password_strength_errors("password1") == ["Password must contain a special character"]

    def test_all_rules_reported(self):
        assert len(password_strength_errors("abc")) == 3


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = get_password_hash("s3cret!pass")
        assert hashed != "s3cret!pass"
        assert verify_password("s3cret!pass", hashed)
        assert not verify_password("wrong!pass1", hashed)


class TestTokenDigests:
    """Digests stored for refresh and reset tokens."""

    def test_hash_is_sha256_hex(self):
        digest = hash_token("token")
        assert len(digest) == 64
        assert digest == hash_token("token")

    def test_token_matches(self):
        token = generate_reset_token()
        assert token_matches(token, hash_token(token))
        assert not token_matches("other", hash_token(token))

    def test_missing_digest_never_matches(self):
        assert not token_matches("token", None)
        assert not token_matches("token", "")

    @given(st.text(min_size=1, max_size=100))
    @settings(max_examples=100)
    def test_any_token_matches_its_digest(self, token):
        assert token_matches(token, hash_token(token))

    def test_reset_tokens_are_unique(self):
        assert len({generate_reset_token() for _ in range(50)}) == 50


class TestLoginLockout:
    """Failed login counting."""

    def test_attempts_left_count_down(self):
        user = User(failed_login_attempts=0)
        now = datetime.now(UTC)

        left = [register_failed_login(user, now) for _ in range(app_settings.max_login_attempts - 1)]

        assert left == list(range(app_settings.max_login_attempts - 1, 0, -1))
        assert user.locked_until is None

    def test_lock_at_limit(self):
        user = User(failed_login_attempts=app_settings.max_login_attempts - 1)
        now = datetime(2024, 1, 1, tzinfo=UTC)

        assert register_failed_login(user, now) == 0
        assert user.locked_until == now + timedelta(minutes=app_settings.account_lock_minutes)
        assert user.failed_login_attempts == 0

    def test_is_locked_window(self):
        now = datetime(2024, 1, 1, tzinfo=UTC)
        user = User(locked_until=now + timedelta(minutes=5))

        assert user.is_locked(now)
        assert not user.is_locked(now + timedelta(minutes=6))
        assert not User(locked_until=None).is_locked(now)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
