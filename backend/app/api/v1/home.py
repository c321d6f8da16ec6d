"""Home page content."""

from typing import Any

from fastapi import APIRouter

from app.api.deps import DbSession
from app.core.config import settings
from app.core.redis import CACHE_HOME_KEY, cache_get_json, cache_set_json
from app.schemas.payment import PaidServiceResponse
from app.services.payments import list_active_services

router = APIRouter()

FEATURES = [
    {"key": "numerology", "title": "Numerology", "path": "/numerology", "premium": False},
    {"key": "tarot", "title": "Tarot", "path": "/tarot", "premium": False},
    {"key": "iching", "title": "I Ching", "path": "/iching", "premium": True},
    {"key": "compatibility", "title": "Compatibility", "path": "/compatibility", "premium": False},
    {"key": "holistic", "title": "Holistic analysis", "path": "/holistic", "premium": False},
    {"key": "community", "title": "Community", "path": "/community", "premium": False},
    {"key": "shop", "title": "Shop", "path": "/products", "premium": False},
]

FEATURED_SERVICES = 3


@router.get("")
async def home(db: DbSession) -> dict[str, Any]:
    """Welcome message, featured services and the feature list (cached)."""
    cached = await cache_get_json(CACHE_HOME_KEY)
    if cached is not None:
        return cached

    services = await list_active_services(db)
    content = {
        "message": f"Welcome to {settings.app_name.removesuffix(' API')}",
        "featured_services": [
            PaidServiceResponse.model_validate(s).model_dump(mode="json")
            for s in services[:FEATURED_SERVICES]
        ],
        "features": FEATURES,
    }
    await cache_set_json(CACHE_HOME_KEY, content, settings.cache_ttl_home)
    return content
