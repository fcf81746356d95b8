"""User behavior tracking API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from personalization_service.api.dependencies import get_engine
from personalization_service.domain.models import BehaviorEvent, BehaviorEventInput
from personalization_service.services.personalization import PersonalizationEngine
from shared.constants import DEFAULT_BEHAVIOR_HISTORY_LIMIT, MAX_BEHAVIOR_HISTORY_LIMIT

router = APIRouter()


@router.post("", response_model=BehaviorEvent)
def track_behavior(
    event: BehaviorEventInput,
    engine: PersonalizationEngine = Depends(get_engine),
) -> BehaviorEvent:
    """
    Track a single user behavior event.

    **Actions:**
    - `view`: User viewed a product page
    - `add_to_cart`: User added a product to the cart
    - `purchase`: User completed a purchase
    - `wishlist`: User added a product to the wishlist
    - `search`: User performed a search

    Events carrying both `user_id` and `product_id` update the user's
    preference profile before the response is returned.
    """
    return engine.track_behavior(event)


@router.get("/{user_id}", response_model=list[BehaviorEvent])
def get_user_behavior(
    user_id: str,
    limit: Annotated[int, Query(ge=1, le=MAX_BEHAVIOR_HISTORY_LIMIT)] = DEFAULT_BEHAVIOR_HISTORY_LIMIT,
    engine: PersonalizationEngine = Depends(get_engine),
) -> list[BehaviorEvent]:
    """Get a user's behavior history, most recent first."""
    return engine.get_user_behavior(user_id, limit)
