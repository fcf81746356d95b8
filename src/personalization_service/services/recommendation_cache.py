"""Time-bounded cache of computed recommendation lists."""

from datetime import timedelta

import structlog

from personalization_service.domain.models import (
    Clock,
    RecommendationCacheEntry,
    RecommendationStrategy,
    utc_now,
)
from personalization_service.infrastructure.repository import CacheStore
from shared.constants import RECOMMENDATION_CACHE_TTL_HOURS

logger = structlog.get_logger()


class RecommendationCache:
    """Keeps the newest list per (user, strategy) until it expires.

    Expired entries are treated as missing on read; they are only removed
    from the store by ``purge_expired``.
    """

    def __init__(
        self,
        store: CacheStore,
        ttl: timedelta = timedelta(hours=RECOMMENDATION_CACHE_TTL_HOURS),
        clock: Clock = utc_now,
    ):
        self.store = store
        self.ttl = ttl
        self.clock = clock

    def get(
        self, user_id: str, strategy: RecommendationStrategy
    ) -> RecommendationCacheEntry | None:
        entry = self.store.get(user_id, strategy)
        if entry is None or not entry.is_live(self.clock()):
            return None
        return entry

    def put(
        self,
        user_id: str,
        strategy: RecommendationStrategy,
        product_ids: list[str],
        score: float | None = None,
    ) -> RecommendationCacheEntry:
        now = self.clock()
        entry = RecommendationCacheEntry(
            user_id=user_id,
            strategy=strategy,
            product_ids=list(product_ids),
            score=score,
            expires_at=now + self.ttl,
            created_at=now,
        )
        self.store.save(entry)
        return entry

    def purge_expired(self) -> int:
        removed = self.store.purge_expired(self.clock())
        if removed:
            logger.info("Purged expired recommendation cache entries", removed=removed)
        return removed
