"""Storage contracts for the personalization engine.

The engine never touches a concrete store; it receives a ``Repository``
bundle at construction time. In-memory, SQLAlchemy and Redis
implementations live next to this module.
"""

from collections.abc import Collection
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from personalization_service.domain.models import (
    BehaviorAction,
    BehaviorEvent,
    ProductSimilarityEdge,
    RecommendationCacheEntry,
    RecommendationStrategy,
    UserPreferenceProfile,
)


class BehaviorStore(Protocol):
    """Append-only behavior log."""

    def append(self, event: BehaviorEvent) -> None: ...

    def recent_for_user(
        self,
        user_id: str,
        limit: int | None = None,
        actions: Collection[BehaviorAction] | None = None,
    ) -> list[BehaviorEvent]:
        """Most recent first."""
        ...

    def since(
        self,
        cutoff: datetime,
        actions: Collection[BehaviorAction] | None = None,
    ) -> list[BehaviorEvent]:
        """Events created at or after ``cutoff``, oldest recorded first."""
        ...


class PreferenceStore(Protocol):
    """One preference profile per user."""

    def get(self, user_id: str) -> UserPreferenceProfile | None: ...

    def save(self, profile: UserPreferenceProfile) -> None: ...


class SimilarityStore(Protocol):
    """Similarity edges, queryable from either product."""

    def upsert(self, edge: ProductSimilarityEdge) -> ProductSimilarityEdge: ...

    def edges_for(
        self,
        product_id: str,
        similarity_type: str | None = None,
        limit: int | None = None,
    ) -> list[ProductSimilarityEdge]:
        """Highest score first."""
        ...


class CacheStore(Protocol):
    """Newest recommendation list per (user, strategy)."""

    def get(
        self, user_id: str, strategy: RecommendationStrategy
    ) -> RecommendationCacheEntry | None: ...

    def save(self, entry: RecommendationCacheEntry) -> None: ...

    def purge_expired(self, now: datetime) -> int: ...


@dataclass
class Repository:
    """The four stores backing one engine instance."""

    behavior: BehaviorStore
    preferences: PreferenceStore
    similarity: SimilarityStore
    cache: CacheStore
