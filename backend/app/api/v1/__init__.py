"""API v1 module."""

from fastapi import APIRouter

from app.api.v1 import (
    analytics,
    auth,
    community,
    divination,
    feedback,
    feedback_analytics,
    health,
    home,
    iching,
    numerology,
    payments,
    products,
    readings,
    recommendations,
    settings,
    tarot,
    users,
)

router = APIRouter()

router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(home.router, prefix="/home", tags=["home"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(settings.router, prefix="/settings", tags=["settings"])
router.include_router(divination.router, prefix="/divination", tags=["divination"])
router.include_router(tarot.router, prefix="/tarot", tags=["tarot"])
router.include_router(iching.router, prefix="/iching", tags=["iching"])
router.include_router(numerology.router, prefix="/numerology", tags=["numerology"])
router.include_router(readings.router, prefix="/readings", tags=["readings"])
router.include_router(payments.router, prefix="/payments", tags=["payments"])
router.include_router(feedback.router, prefix="/feedback", tags=["feedback"])
router.include_router(
    feedback_analytics.router, prefix="/feedback-analytics", tags=["feedback-analytics"]
)
router.include_router(community.router, prefix="/community", tags=["community"])
router.include_router(products.router, prefix="/products", tags=["products"])
router.include_router(recommendations.router, prefix="/recommendations", tags=["recommendations"])
router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
