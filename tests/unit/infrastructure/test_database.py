"""Unit tests for the SQLAlchemy stores, run against in-memory SQLite."""

from collections.abc import Generator
from datetime import timedelta

import pytest

from personalization_service.config import Settings
from personalization_service.domain.models import (
    BehaviorAction,
    BehaviorEvent,
    BehaviorEventInput,
    ProductSimilarityEdge,
    RecommendationCacheEntry,
    RecommendationStrategy,
    UserPreferenceProfile,
)
from personalization_service.infrastructure.database.connection import (
    create_tables,
    get_engine,
    get_session_factory,
)
from personalization_service.infrastructure.database.repository import sql_repository
from personalization_service.infrastructure.repository import Repository
from personalization_service.services.personalization import PersonalizationEngine


@pytest.fixture
def repository() -> Generator[Repository, None, None]:
    engine = get_engine(Settings(database_url_override="sqlite://"))
    create_tables(engine)
    yield sql_repository(get_session_factory(engine), max_events_per_user=3)
    engine.dispose()


def make_event(clock, user_id: str | None, product_id: str, **kwargs) -> BehaviorEvent:
    return BehaviorEvent(
        user_id=user_id,
        product_id=product_id,
        action=kwargs.get("action", BehaviorAction.VIEW),
        metadata=kwargs.get("metadata", {}),
        created_at=kwargs.get("created_at", clock()),
    )


class TestSqlBehaviorStore:
    """Tests for the behavior log table."""

    def test_roundtrip_keeps_utc(self, repository, clock) -> None:
        event = make_event(clock, "u1", "p1", metadata={"source": "search"})
        repository.behavior.append(event)

        assert repository.behavior.recent_for_user("u1") == [event]

    def test_recent_ordering_and_action_filter(self, repository, clock) -> None:
        repository.behavior.append(make_event(clock, "u1", "p1"))
        clock.advance(minutes=1)
        repository.behavior.append(make_event(clock, "u1", "p2", action=BehaviorAction.PURCHASE))
        clock.advance(minutes=1)
        repository.behavior.append(make_event(clock, "u1", "p3"))

        recent = repository.behavior.recent_for_user("u1", limit=2)
        views = repository.behavior.recent_for_user("u1", actions={BehaviorAction.VIEW})

        assert [e.product_id for e in recent] == ["p3", "p2"]
        assert [e.product_id for e in views] == ["p3", "p1"]

    def test_per_user_retention(self, repository, clock) -> None:
        for i in range(5):
            repository.behavior.append(make_event(clock, "u1", f"p{i}"))
            clock.advance(seconds=1)
        repository.behavior.append(make_event(clock, "u2", "p9"))

        assert [e.product_id for e in repository.behavior.recent_for_user("u1")] == [
            "p4",
            "p3",
            "p2",
        ]
        assert len(repository.behavior.recent_for_user("u2")) == 1

    def test_since_in_time_order(self, repository, clock) -> None:
        repository.behavior.append(make_event(clock, None, "old", created_at=clock() - timedelta(days=9)))
        repository.behavior.append(make_event(clock, None, "b", created_at=clock() - timedelta(hours=1)))
        repository.behavior.append(make_event(clock, None, "a", created_at=clock() - timedelta(hours=2)))

        events = repository.behavior.since(clock() - timedelta(days=7))
        assert [e.product_id for e in events] == ["a", "b"]


class TestSqlPreferenceStore:
    """Tests for the preference table."""

    def test_save_and_replace(self, repository, clock) -> None:
        assert repository.preferences.get("u1") is None

        profile = UserPreferenceProfile(
            user_id="u1", preferred_categories=["bongs"], updated_at=clock()
        )
        repository.preferences.save(profile)
        assert repository.preferences.get("u1") == profile

        updated = profile.model_copy(
            update={"preferred_brands": ["brand-a"], "price_range_min": 5.0}
        )
        repository.preferences.save(updated)
        assert repository.preferences.get("u1") == updated


class TestSqlSimilarityStore:
    """Tests for the similarity table."""

    def test_upsert_and_query_both_sides(self, repository, clock) -> None:
        edge = ProductSimilarityEdge(
            product_id_a="p1",
            product_id_b="p2",
            similarity_type="co-purchase",
            similarity_score=0.9,
            created_at=clock(),
        )
        stored = repository.similarity.upsert(edge)
        repository.similarity.upsert(edge.model_copy(update={"id": "ignored", "similarity_score": 0.3}))

        from_b = repository.similarity.edges_for("p2")
        assert len(from_b) == 1
        assert from_b[0].id == stored.id
        assert from_b[0].similarity_score == 0.3

    def test_type_filter_and_order(self, repository, clock) -> None:
        for other, kind, score in (("p2", "co-purchase", 0.4), ("p3", "co-purchase", 0.8), ("p4", "attribute", 0.9)):
            repository.similarity.upsert(
                ProductSimilarityEdge(
                    product_id_a="p1",
                    product_id_b=other,
                    similarity_type=kind,
                    similarity_score=score,
                    created_at=clock(),
                )
            )

        edges = repository.similarity.edges_for("p1", similarity_type="co-purchase")
        assert [e.product_id_b for e in edges] == ["p3", "p2"]
        assert len(repository.similarity.edges_for("p1", limit=1)) == 1


class TestSqlCacheStore:
    """Tests for the recommendation cache table."""

    def test_save_replaces_and_purges(self, repository, clock) -> None:
        def entry(product_ids: list[str]) -> RecommendationCacheEntry:
            return RecommendationCacheEntry(
                user_id="u1",
                strategy=RecommendationStrategy.TRENDING,
                product_ids=product_ids,
                score=1.0,
                expires_at=clock() + timedelta(hours=24),
                created_at=clock(),
            )

        repository.cache.save(entry(["p1"]))
        latest = entry(["p2", "p3"])
        repository.cache.save(latest)

        assert repository.cache.get("u1", RecommendationStrategy.TRENDING) == latest
        assert repository.cache.purge_expired(clock()) == 0
        assert repository.cache.purge_expired(clock() + timedelta(hours=24)) == 1
        assert repository.cache.get("u1", RecommendationStrategy.TRENDING) is None


class TestEngineOnDatabase:
    """End-to-end checks with every store in the database."""

    def test_recommendations_from_database(self, repository, catalog, clock) -> None:
        engine = PersonalizationEngine(catalog, repository, clock=clock)
        engine.save_product_similarity("p1", "p2", "co-purchase", 0.9)
        engine.save_product_similarity("p1", "p3", "co-purchase", 0.5)
        engine.track_behavior(BehaviorEventInput(user_id="u1", product_id="p1", action="view"))

        assert engine.get_recommendations("u1", "similar", 2) == ["p2", "p3"]
        assert engine.get_user_preferences("u1").preferred_categories == ["bongs"]
