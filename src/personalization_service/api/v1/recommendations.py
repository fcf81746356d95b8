"""Recommendation API endpoints."""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from personalization_service.api.dependencies import get_engine
from personalization_service.services.personalization import (
    PersonalizationEngine,
    parse_strategy,
)
from shared.constants import DEFAULT_RECOMMENDATION_LIMIT, MAX_RECOMMENDATION_LIMIT

router = APIRouter()


class RecommendationResponse(BaseModel):
    """Response containing ranked product ids."""

    user_id: str
    type: str
    product_ids: list[str] = Field(..., description="Product ids, best first")
    generated_at: str


@router.get("/{user_id}", response_model=RecommendationResponse)
def get_recommendations(
    user_id: str,
    type: Annotated[str, Query(description="trending, personalized, similar or category_based")] = "personalized",
    limit: Annotated[int, Query(ge=1, le=MAX_RECOMMENDATION_LIMIT)] = DEFAULT_RECOMMENDATION_LIMIT,
    engine: PersonalizationEngine = Depends(get_engine),
) -> RecommendationResponse:
    """
    Get recommendations for a user.

    **Strategies:**
    - `trending`: most viewed, carted and purchased products of the last 7 days
    - `personalized`: catalog scored against the user's preference profile
    - `similar`: neighbors of recently viewed products (trending when none)
    - `category_based`: products from the user's most active category

    Results are cached per user and strategy for 24 hours.
    """
    strategy = parse_strategy(type)
    product_ids = engine.get_recommendations(user_id, strategy, limit)

    return RecommendationResponse(
        user_id=user_id,
        type=strategy.value,
        product_ids=product_ids,
        generated_at=datetime.now(timezone.utc).isoformat(),
    )
