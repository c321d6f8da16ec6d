"""Request middleware: request ids, latency, metrics, activity and errors."""

import logging
import time
import uuid
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.redis import record_activity
from app.core.security import verify_token

logger = logging.getLogger(__name__)

# Paths never written to the activity feed
_ACTIVITY_SKIP_PREFIXES = ("/v1/health", "/docs", "/redoc", "/openapi.json")


@dataclass
class _RouteStats:
    count: int = 0
    errors: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0


class RequestMetrics:
    """Per-process request counters keyed by ``METHOD path``."""

    def __init__(self) -> None:
        self._routes: dict[str, _RouteStats] = defaultdict(_RouteStats)
        self.started_at = datetime.now(UTC)

    def observe(self, key: str, duration_ms: float, status_code: int) -> None:
        stats = self._routes[key]
        stats.count += 1
        stats.total_ms += duration_ms
        stats.max_ms = max(stats.max_ms, duration_ms)
        if status_code >= 500:
            stats.errors += 1

    def reset(self) -> None:
        self._routes.clear()
        self.started_at = datetime.now(UTC)

    def snapshot(self) -> dict[str, Any]:
        routes = {
            key: {
                "count": s.count,
                "errors": s.errors,
                "avg_ms": round(s.total_ms / s.count, 2) if s.count else 0.0,
                "max_ms": round(s.max_ms, 2),
            }
            for key, s in sorted(self._routes.items())
        }
        return {
            "since": self.started_at.isoformat(),
            "total_requests": sum(s.count for s in self._routes.values()),
            "total_errors": sum(s.errors for s in self._routes.values()),
            "routes": routes,
        }


request_metrics = RequestMetrics()

UNMATCHED_ROUTE = "<unmatched>"


def _route_key(request: Request) -> str:
    route = request.scope.get("route")
    # One bucket for every unmatched path
    path = getattr(route, "path", None) or UNMATCHED_ROUTE
    return f"{request.method} {path}"


def _user_id_from_request(request: Request) -> str | None:
    auth = request.headers.get("authorization", "")
    if not auth.lower().startswith("bearer "):
        return None
    payload = verify_token(auth[7:])
    if payload is None or payload.get("type") != "access":
        return None
    return payload.get("sub")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request id, time the request and turn crashes into JSON 500s."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"Unhandled error on {request.method} {request.url.path} request_id={request_id}"
            )
            response = JSONResponse(
                status_code=500,
                content={"detail": "Internal server error", "request_id": request_id},
            )

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        request_metrics.observe(_route_key(request), duration_ms, response.status_code)

        logger.info(
            f"{request.method} {request.url.path} status={response.status_code} "
            f"latency_ms={duration_ms:.2f} request_id={request_id}"
        )
        return response


class ActivityMiddleware(BaseHTTPMiddleware):
    """Record authenticated API calls to the activity feed."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)

        path = request.url.path
        if path.startswith(_ACTIVITY_SKIP_PREFIXES):
            return response

        user_id = _user_id_from_request(request)
        if user_id is not None:
            await record_activity({
                "user_id": user_id,
                "method": request.method,
                "path": path,
                "status": response.status_code,
                "request_id": getattr(request.state, "request_id", None),
                "at": datetime.now(UTC).isoformat(),
            })
        return response
