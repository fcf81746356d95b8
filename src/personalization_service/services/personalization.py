"""Personalization engine facade.

Exposes the public operations used by the storefront: behavior tracking,
preference access, similarity lookups and cached recommendations. Every
operation runs under one re-entrant lock.
"""

import threading
from datetime import timedelta

import structlog

from personalization_service.config import Settings
from personalization_service.domain.models import (
    BehaviorEvent,
    BehaviorEventInput,
    Clock,
    PreferenceUpdate,
    ProductSimilarityEdge,
    RecommendationStrategy,
    UserPreferenceProfile,
    utc_now,
)
from personalization_service.exceptions import InvalidArgumentError
from personalization_service.infrastructure.catalog import CatalogAccessor
from personalization_service.infrastructure.repository import Repository
from personalization_service.services.behavior_tracker import BehaviorTracker
from personalization_service.services.recommendation_cache import RecommendationCache
from personalization_service.services.recommendation_engine import Recommender
from personalization_service.services.similarity import SimilarityIndex
from personalization_service.services.user_preference import PreferenceEngine
from shared.constants import (
    DEFAULT_BEHAVIOR_HISTORY_LIMIT,
    DEFAULT_RECOMMENDATION_LIMIT,
    DEFAULT_SIMILARITY_LIMIT,
    RECOMMENDATION_CACHE_TTL_HOURS,
)

logger = structlog.get_logger()


def _require_positive(name: str, value: int) -> None:
    if value <= 0:
        raise InvalidArgumentError(f"{name} must be positive", details={name: value})


def parse_strategy(value: str | RecommendationStrategy) -> RecommendationStrategy:
    """Resolve a strategy name, rejecting anything outside the four strategies."""
    if isinstance(value, RecommendationStrategy):
        return value
    try:
        return RecommendationStrategy(value)
    except ValueError:
        raise InvalidArgumentError(
            "Invalid recommendation type",
            details={
                "type": value,
                "valid_types": [s.value for s in RecommendationStrategy],
            },
        ) from None


class PersonalizationEngine:
    """Behavior tracking, preferences and cached recommendations for one storefront."""

    def __init__(
        self,
        catalog: CatalogAccessor,
        repository: Repository,
        clock: Clock = utc_now,
        cache_ttl: timedelta = timedelta(hours=RECOMMENDATION_CACHE_TTL_HOURS),
        recommender_options: dict | None = None,
    ):
        self.catalog = catalog
        self.repository = repository
        self.clock = clock
        self._lock = threading.RLock()

        self.preferences = PreferenceEngine(repository.preferences, clock=clock)
        self.tracker = BehaviorTracker(
            repository.behavior, catalog, self.preferences, clock=clock
        )
        self.similarity = SimilarityIndex(repository.similarity, clock=clock)
        self.cache = RecommendationCache(repository.cache, ttl=cache_ttl, clock=clock)
        self.recommender = Recommender(
            catalog,
            self.tracker,
            self.preferences,
            self.similarity,
            clock=clock,
            **(recommender_options or {}),
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        catalog: CatalogAccessor,
        repository: Repository,
        clock: Clock = utc_now,
    ) -> "PersonalizationEngine":
        return cls(
            catalog,
            repository,
            clock=clock,
            cache_ttl=timedelta(hours=settings.cache_ttl_hours),
            recommender_options={
                "trending_window": timedelta(days=settings.trending_window_days),
                "new_arrival_window": timedelta(days=settings.new_arrival_window_days),
                "similarity_type": settings.similarity_type,
                "seed_view_limit": settings.similar_seed_view_limit,
                "neighbor_limit": settings.similar_neighbor_limit,
                "category_history_limit": settings.category_history_limit,
                "category_top_n": settings.category_top_n,
            },
        )

    # ==========================================================================
    # Behavior
    # ==========================================================================

    def track_behavior(self, event: BehaviorEventInput) -> BehaviorEvent:
        with self._lock:
            return self.tracker.track(event)

    def get_user_behavior(
        self, user_id: str, limit: int = DEFAULT_BEHAVIOR_HISTORY_LIMIT
    ) -> list[BehaviorEvent]:
        _require_positive("limit", limit)
        with self._lock:
            return self.tracker.recent(user_id, limit)

    # ==========================================================================
    # Preferences
    # ==========================================================================

    def get_user_preferences(self, user_id: str) -> UserPreferenceProfile | None:
        with self._lock:
            return self.preferences.get(user_id)

    def update_user_preferences(
        self, user_id: str, partial: PreferenceUpdate
    ) -> UserPreferenceProfile:
        with self._lock:
            return self.preferences.update(user_id, partial)

    # ==========================================================================
    # Recommendations
    # ==========================================================================

    def get_recommendations(
        self,
        user_id: str,
        strategy: str | RecommendationStrategy,
        limit: int = DEFAULT_RECOMMENDATION_LIMIT,
    ) -> list[str]:
        """
        Ranked product ids for a user, served from cache when possible.

        A live cache entry is returned exactly as it was stored. On a miss
        the strategy runs and its result is cached for the configured TTL.
        Catalog failures propagate and leave the cache untouched.

        Args:
            user_id: The user's ID
            strategy: One of trending, personalized, similar, category_based
            limit: Maximum number of products to compute on a miss

        Returns:
            Product ids, best first
        """
        strategy = parse_strategy(strategy)
        _require_positive("limit", limit)

        with self._lock:
            cached = self.cache.get(user_id, strategy)
            if cached is not None:
                logger.debug(
                    "Recommendation cache hit",
                    user_id=user_id,
                    strategy=strategy.value,
                    expires_at=cached.expires_at.isoformat(),
                )
                return list(cached.product_ids)

            ranked = self.recommender.rank(user_id, strategy, limit)
            product_ids = [product_id for product_id, _ in ranked]
            top_score = ranked[0][1] if ranked else None
            self.cache.put(user_id, strategy, product_ids, score=top_score)

            logger.info(
                "Computed recommendations",
                user_id=user_id,
                strategy=strategy.value,
                count=len(product_ids),
            )
            return product_ids

    def purge_expired_cache(self) -> int:
        with self._lock:
            return self.cache.purge_expired()

    # ==========================================================================
    # Similarity
    # ==========================================================================

    def get_product_similarity(
        self, product_id: str, limit: int = DEFAULT_SIMILARITY_LIMIT
    ) -> list[ProductSimilarityEdge]:
        _require_positive("limit", limit)
        with self._lock:
            return self.similarity.edges(product_id, limit)

    def save_product_similarity(
        self,
        product_a: str,
        product_b: str,
        similarity_type: str,
        score: float,
    ) -> ProductSimilarityEdge:
        with self._lock:
            return self.similarity.add_edge(product_a, product_b, similarity_type, score)
