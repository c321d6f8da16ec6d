"""Security utilities - JWT, password hashing, token digests."""

import hashlib
import hmac
import re
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 8
_DIGIT_RE = re.compile(r"\d")
_SPECIAL_RE = re.compile(r"[^A-Za-z0-9]")


def _encode(claims: dict[str, Any], expire: datetime) -> str:
    now = datetime.now(UTC)
    to_encode = {**claims, "exp": expire, "iat": now}
    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
    additional_claims: dict[str, Any] | None = None,
) -> str:
    """Create JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    claims: dict[str, Any] = {"sub": subject, "type": "access"}
    if additional_claims:
        claims.update(additional_claims)
    return _encode(claims, datetime.now(UTC) + expires_delta)


def create_refresh_token(
    subject: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create JWT refresh token.

    A random ``jti`` keeps two tokens issued within the same second distinct,
    so rotation always invalidates the previous token.
    """
    if expires_delta is None:
        expires_delta = timedelta(days=settings.jwt_refresh_token_expire_days)

    claims = {"sub": subject, "type": "refresh", "jti": secrets.token_hex(8)}
    return _encode(claims, datetime.now(UTC) + expires_delta)


def verify_token(token: str) -> dict[str, Any] | None:
    """Verify JWT token and return payload."""
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def password_strength_errors(password: str) -> list[str]:
    """Return the list of strength rules the password violates."""
    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if not _DIGIT_RE.search(password):
        errors.append("Password must contain a number")
    if not _SPECIAL_RE.search(password):
        errors.append("Password must contain a special character")
    return errors


def hash_token(token: str) -> str:
    """SHA-256 digest used to store refresh and reset tokens at rest."""
    return hashlib.sha256(token.encode()).hexdigest()


def token_matches(token: str, token_hash: str | None) -> bool:
    """Constant-time comparison of a token against its stored digest."""
    if not token_hash:
        return False
    return hmac.compare_digest(hash_token(token), token_hash)


def generate_reset_token() -> str:
    """Random URL-safe token for password reset links."""
    return secrets.token_urlsafe(32)
