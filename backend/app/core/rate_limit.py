"""Basic in-memory rate limiting utilities.

Notes:
- This is per-process memory. In multi-instance deployments, use a shared store
  (e.g., Redis) to enforce global limits.
- Keys prefer the user id and fall back to the client IP.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from app.core.config import settings


@dataclass
class _Bucket:
    window_start: float
    count: int


# (key, window_seconds) -> bucket
_BUCKETS: dict[tuple[str, int], _Bucket] = {}

SCOPE_DIVINATION = "divination"
SCOPE_AI = "ai"
SCOPE_AUTH = "auth"


def _now() -> float:
    return time.time()


def _get_client_key(request: Request, user_id: str | None) -> str:
    if user_id:
        return f"user:{user_id}"
    xff = request.headers.get("x-forwarded-for")
    if xff:
        ip = xff.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else "unknown"
    return f"ip:{ip}"


def reset_rate_limits() -> None:
    """Forget all buckets."""
    _BUCKETS.clear()


def enforce_rate_limit(
    request: Request,
    *,
    user_id: str | None,
    limit_per_minute: int,
    scope: str,
) -> None:
    """Enforce a fixed-window rate limit.

    Raises:
        HTTPException(429) when exceeded.
    """
    if not settings.rate_limit_enabled:
        return

    window_seconds = 60
    key = f"{scope}:{_get_client_key(request, user_id)}"
    bucket_key = (key, window_seconds)

    now = _now()
    bucket = _BUCKETS.get(bucket_key)
    if bucket is None or now - bucket.window_start >= window_seconds:
        _BUCKETS[bucket_key] = _Bucket(window_start=now, count=1)
        return

    if bucket.count >= limit_per_minute:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many {scope} requests, please try again later",
            headers={
                "Retry-After": str(int(window_seconds - (now - bucket.window_start))),
            },
        )

    bucket.count += 1


def divination_rate_limit(request: Request, user_id: str | None = None) -> None:
    """Rate limit for calculation endpoints."""
    enforce_rate_limit(
        request,
        user_id=user_id,
        limit_per_minute=settings.rate_limit_divination_per_minute,
        scope=SCOPE_DIVINATION,
    )


def ai_rate_limit(request: Request, user_id: str | None = None) -> None:
    """Rate limit for endpoints that call the LLM."""
    enforce_rate_limit(
        request,
        user_id=user_id,
        limit_per_minute=settings.rate_limit_ai_per_minute,
        scope=SCOPE_AI,
    )


def auth_rate_limit(request: Request) -> None:
    """Rate limit for credential endpoints, keyed by IP only."""
    enforce_rate_limit(
        request,
        user_id=None,
        limit_per_minute=settings.rate_limit_auth_per_minute,
        scope=SCOPE_AUTH,
    )
