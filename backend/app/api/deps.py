"""Shared API dependencies."""

import logging
import uuid
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.rate_limit import ai_rate_limit
from app.core.security import verify_token
from app.models.reading import ReadingType
from app.models.user import User
from app.services.interpreter import get_reading_interpreter
from app.services.llm_gateway import LLMError
from app.services.payments import AccessCheck, ServiceNotFoundError, check_service_access

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]

_UNAUTHORIZED_HEADERS = {"WWW-Authenticate": "Bearer"}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=_UNAUTHORIZED_HEADERS,
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: DbSession,
) -> User:
    """Resolve the bearer access token to an active user.

    Raises:
        HTTPException(401): missing, expired or malformed token, wrong token
            type, or the user no longer exists.
        HTTPException(403): the account is disabled.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid or expired token")

    if payload.get("type") != "access":
        raise _unauthorized("Invalid token type")

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise _unauthorized("Invalid or expired token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )
    return user


async def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: DbSession,
) -> User | None:
    """Like get_current_user, but anonymous requests resolve to None."""
    if credentials is None:
        return None
    return await get_current_user(credentials=credentials, db=db)


async def get_admin_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]
AdminUser = Annotated[User, Depends(get_admin_user)]


async def require_service_access(db: AsyncSession, user: User, service_slug: str) -> AccessCheck:
    """Ensure the user holds an active purchase of a paid service.

    Raises:
        HTTPException(404): the service does not exist or is inactive.
        HTTPException(403): the service has not been purchased.
    """
    try:
        access = await check_service_access(db, user.id, service_slug)
    except ServiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if not access.has_access:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Purchase '{service_slug}' to unlock this reading",
        )
    return access


async def interpret_or_503(
    request: Request,
    user: User,
    reading_type: ReadingType,
    data: dict[str, Any],
    question: str | None = None,
) -> dict[str, Any]:
    """Rate-limited interpretation; an unavailable LLM becomes a 503."""
    ai_rate_limit(request, str(user.id))
    try:
        return await get_reading_interpreter().interpret(reading_type, data, question)
    except LLMError as e:
        logger.error(f"Interpretation failed for {reading_type.value}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Interpretation service is temporarily unavailable",
        )
