"""Behavior tracking service."""

from collections.abc import Collection
from datetime import datetime

import structlog

from personalization_service.domain.models import (
    BehaviorAction,
    BehaviorEvent,
    BehaviorEventInput,
    Clock,
    utc_now,
)
from personalization_service.exceptions import UpstreamError
from personalization_service.infrastructure.catalog import CatalogAccessor
from personalization_service.infrastructure.repository import BehaviorStore
from personalization_service.services.user_preference import PreferenceEngine

logger = structlog.get_logger()


class BehaviorTracker:
    """Records behavior events and feeds them to the preference engine."""

    def __init__(
        self,
        store: BehaviorStore,
        catalog: CatalogAccessor,
        preferences: PreferenceEngine,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.catalog = catalog
        self.preferences = preferences
        self.clock = clock

    def track(self, event_input: BehaviorEventInput) -> BehaviorEvent:
        """
        Store a behavior event and update the user's preferences.

        Events without a user or product are stored for analytics only. An
        unknown product, or a catalog that cannot be reached, skips the
        preference update; the event itself is always kept.
        """
        event = BehaviorEvent(
            user_id=event_input.user_id,
            product_id=event_input.product_id,
            session_id=event_input.session_id,
            action=event_input.action,
            metadata=dict(event_input.metadata),
            created_at=event_input.created_at or self.clock(),
        )
        self.store.append(event)

        logger.info(
            "Tracked behavior",
            event_id=event.id,
            user_id=event.user_id,
            product_id=event.product_id,
            action=event.action.value,
        )

        if event.user_id is not None and event.product_id is not None:
            self._absorb(event)

        return event

    def _absorb(self, event: BehaviorEvent) -> None:
        try:
            product = self.catalog.get_product(event.product_id)
        except UpstreamError as e:
            logger.warning(
                "Skipping preference update, catalog unavailable",
                event_id=event.id,
                product_id=event.product_id,
                error=e.message,
            )
            return

        if product is None:
            logger.debug("Skipping preference update, unknown product", product_id=event.product_id)
            return

        self.preferences.absorb(event, product)

    def recent(
        self,
        user_id: str,
        limit: int,
        actions: Collection[BehaviorAction] | None = None,
    ) -> list[BehaviorEvent]:
        """A user's events, most recent first."""
        return self.store.recent_for_user(user_id, limit=limit, actions=actions)

    def since(
        self,
        cutoff: datetime,
        actions: Collection[BehaviorAction] | None = None,
    ) -> list[BehaviorEvent]:
        return self.store.since(cutoff, actions=actions)
