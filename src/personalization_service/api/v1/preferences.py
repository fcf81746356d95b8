"""User preference API endpoints."""

from fastapi import APIRouter, Depends

from personalization_service.api.dependencies import get_engine
from personalization_service.domain.models import PreferenceUpdate, UserPreferenceProfile
from personalization_service.exceptions import NotFoundError
from personalization_service.services.personalization import PersonalizationEngine

router = APIRouter()


@router.get("/{user_id}", response_model=UserPreferenceProfile)
def get_user_preferences(
    user_id: str,
    engine: PersonalizationEngine = Depends(get_engine),
) -> UserPreferenceProfile:
    """Get a user's preference profile."""
    profile = engine.get_user_preferences(user_id)
    if profile is None:
        raise NotFoundError("User preferences", user_id)
    return profile


@router.put("/{user_id}", response_model=UserPreferenceProfile)
def update_user_preferences(
    user_id: str,
    update: PreferenceUpdate,
    engine: PersonalizationEngine = Depends(get_engine),
) -> UserPreferenceProfile:
    """
    Edit a user's preferences directly.

    Only the fields present in the body are changed. Lists replace the
    stored values, so this is how a preference gets removed.
    """
    return engine.update_user_preferences(user_id, update)
