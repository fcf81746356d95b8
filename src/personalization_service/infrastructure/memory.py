"""Process-local stores.

Behavior events are kept in two ring buffers: a global log bounded by
``max_events`` that feeds the trending window, and a per-user buffer
bounded by ``max_events_per_user`` that feeds history lookups. Both hold
references to the same stored events.

Stores for records with list or dict fields keep a deep copy of what they
are given and return deep copies, so callers never change stored state in
place.
"""

from collections import defaultdict, deque
from collections.abc import Collection
from datetime import datetime

from personalization_service.domain.models import (
    BehaviorAction,
    BehaviorEvent,
    ProductSimilarityEdge,
    RecommendationCacheEntry,
    RecommendationStrategy,
    UserPreferenceProfile,
)
from personalization_service.infrastructure.repository import Repository
from shared.constants import BEHAVIOR_EVENTS_PER_USER, BEHAVIOR_EVENTS_TOTAL


class InMemoryBehaviorStore:
    """Ring-buffered behavior log indexed by user."""

    def __init__(
        self,
        max_events: int = BEHAVIOR_EVENTS_TOTAL,
        max_events_per_user: int = BEHAVIOR_EVENTS_PER_USER,
    ):
        self._log: deque[BehaviorEvent] = deque(maxlen=max_events)
        self._by_user: dict[str, deque[BehaviorEvent]] = defaultdict(
            lambda: deque(maxlen=max_events_per_user)
        )

    def append(self, event: BehaviorEvent) -> None:
        event = event.model_copy(deep=True)
        self._log.append(event)
        if event.user_id is not None:
            self._by_user[event.user_id].append(event)

    def recent_for_user(
        self,
        user_id: str,
        limit: int | None = None,
        actions: Collection[BehaviorAction] | None = None,
    ) -> list[BehaviorEvent]:
        events = self._by_user.get(user_id)
        if not events:
            return []

        # later insertions win timestamp ties
        ordered = sorted(reversed(events), key=lambda e: e.created_at, reverse=True)
        if actions is not None:
            ordered = [e for e in ordered if e.action in actions]
        if limit is not None:
            ordered = ordered[:limit]
        return [e.model_copy(deep=True) for e in ordered]

    def since(
        self,
        cutoff: datetime,
        actions: Collection[BehaviorAction] | None = None,
    ) -> list[BehaviorEvent]:
        return [
            e.model_copy(deep=True)
            for e in self._log
            if e.created_at >= cutoff and (actions is None or e.action in actions)
        ]

    def __len__(self) -> int:
        return len(self._log)


class InMemoryPreferenceStore:
    def __init__(self) -> None:
        self._profiles: dict[str, UserPreferenceProfile] = {}

    def get(self, user_id: str) -> UserPreferenceProfile | None:
        profile = self._profiles.get(user_id)
        return profile.model_copy(deep=True) if profile is not None else None

    def save(self, profile: UserPreferenceProfile) -> None:
        self._profiles[profile.user_id] = profile.model_copy(deep=True)


class InMemorySimilarityStore:
    """Edges stored once under a normalised key, indexed from both products."""

    def __init__(self) -> None:
        self._edges: dict[tuple[str, str, str], ProductSimilarityEdge] = {}
        self._by_product: dict[str, set[tuple[str, str, str]]] = defaultdict(set)

    def upsert(self, edge: ProductSimilarityEdge) -> ProductSimilarityEdge:
        key = edge.key
        existing = self._edges.get(key)
        if existing is not None:
            edge = edge.model_copy(update={"id": existing.id})
        self._edges[key] = edge
        self._by_product[edge.product_id_a].add(key)
        self._by_product[edge.product_id_b].add(key)
        return edge

    def edges_for(
        self,
        product_id: str,
        similarity_type: str | None = None,
        limit: int | None = None,
    ) -> list[ProductSimilarityEdge]:
        edges = [
            self._edges[key]
            for key in self._by_product.get(product_id, ())
            if similarity_type is None or key[2] == similarity_type
        ]
        # set iteration order is arbitrary, so tie-break on the key
        edges.sort(key=lambda e: (-e.similarity_score, e.key))
        return edges if limit is None else edges[:limit]


class InMemoryCacheStore:
    def __init__(self) -> None:
        self._entries: dict[tuple[str, RecommendationStrategy], RecommendationCacheEntry] = {}

    def get(
        self, user_id: str, strategy: RecommendationStrategy
    ) -> RecommendationCacheEntry | None:
        entry = self._entries.get((user_id, strategy))
        return entry.model_copy(deep=True) if entry is not None else None

    def save(self, entry: RecommendationCacheEntry) -> None:
        self._entries[(entry.user_id, entry.strategy)] = entry.model_copy(deep=True)

    def purge_expired(self, now: datetime) -> int:
        expired = [key for key, entry in self._entries.items() if not entry.is_live(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


def in_memory_repository(
    max_events: int = BEHAVIOR_EVENTS_TOTAL,
    max_events_per_user: int = BEHAVIOR_EVENTS_PER_USER,
) -> Repository:
    """Build a repository with every store held in process memory."""
    return Repository(
        behavior=InMemoryBehaviorStore(max_events, max_events_per_user),
        preferences=InMemoryPreferenceStore(),
        similarity=InMemorySimilarityStore(),
        cache=InMemoryCacheStore(),
    )
