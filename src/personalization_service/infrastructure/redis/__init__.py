"""Redis-backed recommendation cache store with graceful degradation."""

from datetime import datetime

import orjson
import redis
import structlog

from personalization_service.config import Settings
from personalization_service.domain.models import (
    RecommendationCacheEntry,
    RecommendationStrategy,
)

logger = structlog.get_logger()

KEY_PREFIX = "recs"


def get_redis_client(settings: Settings) -> redis.Redis | None:
    """Connect to Redis, or return None when it is unreachable."""
    try:
        client = redis.Redis.from_url(
            settings.redis_url,
            decode_responses=False,
            socket_connect_timeout=2,
            socket_timeout=2,
            retry_on_timeout=True,
        )
        client.ping()
        logger.info("Redis connection established")
        return client
    except redis.RedisError as e:
        logger.warning("Redis unavailable, recommendation caching disabled", error=str(e))
        return None


class RedisCacheStore:
    """Recommendation cache in Redis. Behaves as an empty cache if Redis is unavailable.

    Keys expire natively at the entry's ``expires_at``, so ``purge_expired``
    has nothing to do.
    """

    def __init__(self, client: redis.Redis | None):
        self.client = client

    @staticmethod
    def _key(user_id: str, strategy: RecommendationStrategy) -> str:
        return f"{KEY_PREFIX}:{user_id}:{strategy.value}"

    def get(
        self, user_id: str, strategy: RecommendationStrategy
    ) -> RecommendationCacheEntry | None:
        if not self.client:
            return None
        key = self._key(user_id, strategy)
        try:
            data = self.client.get(key)
            if data:
                return RecommendationCacheEntry.model_validate(orjson.loads(data))
        except (redis.RedisError, ValueError) as e:
            logger.warning("Cache get failed", key=key, error=str(e))
        return None

    def save(self, entry: RecommendationCacheEntry) -> None:
        if not self.client:
            return
        key = self._key(entry.user_id, entry.strategy)
        try:
            self.client.set(
                key,
                orjson.dumps(entry.model_dump(mode="json")),
                exat=int(entry.expires_at.timestamp()) + 1,
            )
        except redis.RedisError as e:
            logger.warning("Cache set failed", key=key, error=str(e))

    def purge_expired(self, now: datetime) -> int:
        return 0

    def health_check(self) -> bool:
        if not self.client:
            return False
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False
