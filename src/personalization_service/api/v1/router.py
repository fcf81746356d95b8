"""API v1 router that aggregates all endpoint routers."""

from fastapi import APIRouter

from personalization_service.api.v1 import (
    behavior,
    health,
    preferences,
    recommendations,
    similarity,
)

api_router = APIRouter()

# Include all routers
api_router.include_router(
    health.router,
    tags=["Health"],
)

api_router.include_router(
    behavior.router,
    prefix="/user-behavior",
    tags=["Behavior"],
)

api_router.include_router(
    preferences.router,
    prefix="/user-preferences",
    tags=["Preferences"],
)

api_router.include_router(
    recommendations.router,
    prefix="/recommendations",
    tags=["Recommendations"],
)

api_router.include_router(
    similarity.router,
    prefix="/product-similarity",
    tags=["Similarity"],
)
