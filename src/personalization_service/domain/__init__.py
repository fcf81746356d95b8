"""Domain models."""

from personalization_service.domain.models import (
    BehaviorAction,
    BehaviorEvent,
    BehaviorEventInput,
    Clock,
    PreferenceUpdate,
    Product,
    ProductFilter,
    ProductSimilarityEdge,
    RecommendationCacheEntry,
    RecommendationStrategy,
    SimilarNeighbor,
    UserPreferenceProfile,
    utc_now,
)

__all__ = [
    "BehaviorAction",
    "BehaviorEvent",
    "BehaviorEventInput",
    "Clock",
    "PreferenceUpdate",
    "Product",
    "ProductFilter",
    "ProductSimilarityEdge",
    "RecommendationCacheEntry",
    "RecommendationStrategy",
    "SimilarNeighbor",
    "UserPreferenceProfile",
    "utc_now",
]
