"""Unit tests for behavior tracking."""

from datetime import timedelta

import httpx
import pytest

from personalization_service.domain.models import BehaviorAction, BehaviorEventInput
from personalization_service.exceptions import UpstreamError
from personalization_service.infrastructure.memory import (
    InMemoryBehaviorStore,
    InMemoryPreferenceStore,
)
from personalization_service.services.behavior_tracker import BehaviorTracker
from personalization_service.services.user_preference import PreferenceEngine


@pytest.fixture
def tracker(catalog, clock) -> BehaviorTracker:
    preferences = PreferenceEngine(InMemoryPreferenceStore(), clock=clock)
    return BehaviorTracker(InMemoryBehaviorStore(), catalog, preferences, clock=clock)


class TestTrack:
    """Tests for recording events."""

    def test_event_gets_id_and_timestamp(self, tracker, clock) -> None:
        event = tracker.track(
            BehaviorEventInput(user_id="u1", product_id="p1", action=BehaviorAction.VIEW)
        )

        assert event.id
        assert event.created_at == clock()
        assert tracker.recent("u1", 10) == [event]

    def test_supplied_timestamp_is_kept(self, tracker, clock) -> None:
        earlier = clock() - timedelta(days=2)
        event = tracker.track(
            BehaviorEventInput(
                user_id="u1", product_id="p1", action="purchase", created_at=earlier
            )
        )
        assert event.created_at == earlier
        assert event.action is BehaviorAction.PURCHASE

    def test_view_updates_preferences(self, tracker) -> None:
        tracker.track(BehaviorEventInput(user_id="u1", product_id="r1", action="view"))

        profile = tracker.preferences.get("u1")
        assert profile.preferred_categories == ["rigs"]
        assert profile.preferred_brands == ["brand-c"]
        assert profile.preferred_materials == ["quartz"]

    def test_same_category_recorded_once(self, tracker) -> None:
        tracker.track(BehaviorEventInput(user_id="u1", product_id="p1", action="view"))
        tracker.track(BehaviorEventInput(user_id="u1", product_id="p2", action="purchase"))

        profile = tracker.preferences.get("u1")
        assert profile.preferred_categories == ["bongs"]
        assert profile.preferred_brands == ["brand-a", "brand-b"]

    def test_anonymous_event_stored_without_profile(self, tracker, catalog, clock) -> None:
        tracker.track(BehaviorEventInput(product_id="p1", action="view"))

        assert len(tracker.since(clock() - timedelta(hours=1))) == 1
        assert catalog.get_calls == 0

    def test_search_without_product_skips_catalog(self, tracker, catalog) -> None:
        tracker.track(
            BehaviorEventInput(user_id="u1", action="search", metadata={"query": "glass"})
        )

        assert catalog.get_calls == 0
        assert tracker.preferences.get("u1") is None
        assert tracker.recent("u1", 5)[0].metadata == {"query": "glass"}

    def test_unknown_product_keeps_event(self, tracker) -> None:
        tracker.track(BehaviorEventInput(user_id="u1", product_id="missing", action="view"))

        assert len(tracker.recent("u1", 5)) == 1
        assert tracker.preferences.get("u1") is None

    def test_catalog_failure_keeps_event(self, tracker, catalog) -> None:
        catalog.error = UpstreamError("get_product", httpx.ConnectError("refused"))

        event = tracker.track(BehaviorEventInput(user_id="u1", product_id="p1", action="view"))

        assert tracker.recent("u1", 5) == [event]
        assert tracker.preferences.get("u1") is None


class TestRecent:
    """Tests for history lookups."""

    def test_most_recent_first(self, tracker, clock) -> None:
        for product_id in ("p1", "p2", "p3"):
            tracker.track(BehaviorEventInput(user_id="u1", product_id=product_id, action="view"))
            clock.advance(minutes=1)

        assert [e.product_id for e in tracker.recent("u1", 2)] == ["p3", "p2"]

    def test_filter_by_action(self, tracker) -> None:
        tracker.track(BehaviorEventInput(user_id="u1", product_id="p1", action="view"))
        tracker.track(BehaviorEventInput(user_id="u1", product_id="p2", action="wishlist"))

        views = tracker.recent("u1", 10, actions={BehaviorAction.VIEW})
        assert [e.product_id for e in views] == ["p1"]

    def test_other_users_not_returned(self, tracker) -> None:
        tracker.track(BehaviorEventInput(user_id="u1", product_id="p1", action="view"))
        assert tracker.recent("u2", 10) == []
