"""User preference service.

Maintains one preference profile per user. Behavior-driven inference only
ever adds values; explicit edits through ``update`` may replace them.
"""

import structlog

from personalization_service.domain.models import (
    BehaviorEvent,
    Clock,
    PreferenceUpdate,
    Product,
    UserPreferenceProfile,
    unique_values,
    utc_now,
)
from personalization_service.exceptions import InvalidArgumentError
from personalization_service.infrastructure.repository import PreferenceStore

logger = structlog.get_logger()


class PreferenceEngine:
    """Service for inferring and editing user preference profiles."""

    def __init__(self, store: PreferenceStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    def get(self, user_id: str) -> UserPreferenceProfile | None:
        return self.store.get(user_id)

    def absorb(self, event: BehaviorEvent, product: Product) -> UserPreferenceProfile | None:
        """
        Merge a product's attributes into the event user's profile.

        Category, brand and material are each added when not already
        present. Absorbing the same product again changes nothing, not even
        ``updated_at``.

        Args:
            event: The tracked behavior event
            product: The product the event refers to

        Returns:
            The user's profile, or None for anonymous events
        """
        if event.user_id is None:
            return None

        profile = self.store.get(event.user_id)
        if profile is None:
            profile = UserPreferenceProfile(user_id=event.user_id, updated_at=self.clock())
            created = True
        else:
            created = False

        changes = {}
        for field, value in (
            ("preferred_categories", product.category_id),
            ("preferred_brands", product.brand_id),
            ("preferred_materials", product.material),
        ):
            current = getattr(profile, field)
            if value and value not in current:
                changes[field] = [*current, value]

        if not changes and not created:
            return profile

        if changes:
            profile = profile.model_copy(update={**changes, "updated_at": self.clock()})
        self.store.save(profile)

        logger.debug(
            "Absorbed product into preferences",
            user_id=event.user_id,
            product_id=product.id,
            added=sorted(changes),
        )
        return profile

    def update(self, user_id: str, partial: PreferenceUpdate) -> UserPreferenceProfile:
        """
        Apply an explicit preference edit, creating the profile if needed.

        Only fields set on ``partial`` are touched; they overwrite the stored
        values, so this is the one path that can remove preferences.
        """
        changes = partial.model_dump(exclude_unset=True)
        for field in ("preferred_categories", "preferred_brands", "preferred_materials"):
            if field in changes:
                changes[field] = unique_values(changes[field] or [])
        if "vip_products_only" in changes and changes["vip_products_only"] is None:
            changes["vip_products_only"] = False

        profile = self.store.get(user_id) or UserPreferenceProfile(user_id=user_id)
        profile = profile.model_copy(update={**changes, "updated_at": self.clock()})

        if (
            profile.has_price_range
            and profile.price_range_min > profile.price_range_max
        ):
            raise InvalidArgumentError(
                "price_range_min must not exceed price_range_max",
                details={
                    "price_range_min": profile.price_range_min,
                    "price_range_max": profile.price_range_max,
                },
            )

        self.store.save(profile)
        logger.info("Updated user preferences", user_id=user_id, fields=sorted(changes))
        return profile
