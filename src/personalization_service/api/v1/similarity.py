"""Product similarity API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from personalization_service.api.dependencies import get_engine
from personalization_service.domain.models import ProductSimilarityEdge
from personalization_service.services.personalization import PersonalizationEngine
from shared.constants import (
    DEFAULT_SIMILARITY_LIMIT,
    DEFAULT_SIMILARITY_TYPE,
    MAX_SIMILARITY_LIMIT,
)

router = APIRouter()


class SimilarityRequest(BaseModel):
    """Request model for storing a similarity score."""

    product_id_a: str
    product_id_b: str
    similarity_type: str = Field(DEFAULT_SIMILARITY_TYPE, description="e.g. co-purchase, attribute")
    similarity_score: float = Field(..., ge=0.0)


@router.get("/{product_id}", response_model=list[ProductSimilarityEdge])
def get_product_similarity(
    product_id: str,
    limit: Annotated[int, Query(ge=1, le=MAX_SIMILARITY_LIMIT)] = DEFAULT_SIMILARITY_LIMIT,
    engine: PersonalizationEngine = Depends(get_engine),
) -> list[ProductSimilarityEdge]:
    """Get the strongest similarity edges touching a product, of any type."""
    return engine.get_product_similarity(product_id, limit)


@router.post("", response_model=ProductSimilarityEdge)
def save_product_similarity(
    request: SimilarityRequest,
    engine: PersonalizationEngine = Depends(get_engine),
) -> ProductSimilarityEdge:
    """Store or replace the similarity score of a product pair."""
    return engine.save_product_similarity(
        request.product_id_a,
        request.product_id_b,
        request.similarity_type,
        request.similarity_score,
    )
