"""Recommendation engine service.

Implements the four recommendation strategies over the catalog, the
behavior log, preference profiles and the similarity index. Every strategy
produces ``(product_id, score)`` pairs, best first; nothing here writes to
any store.
"""

from collections import Counter, defaultdict
from datetime import datetime, timedelta

import structlog

from personalization_service.domain.models import (
    BehaviorAction,
    Clock,
    Product,
    ProductFilter,
    RecommendationStrategy,
    UserPreferenceProfile,
    unique_values,
    utc_now,
)
from personalization_service.infrastructure.catalog import CatalogAccessor
from personalization_service.services.behavior_tracker import BehaviorTracker
from personalization_service.services.similarity import SimilarityIndex
from personalization_service.services.user_preference import PreferenceEngine
from shared.constants import (
    CATEGORY_HISTORY_LIMIT,
    CATEGORY_TOP_N,
    DEFAULT_SIMILARITY_TYPE,
    NEW_ARRIVAL_WINDOW_DAYS,
    PERSONALIZED_WEIGHTS,
    SIMILAR_NEIGHBOR_LIMIT,
    SIMILAR_SEED_VIEW_LIMIT,
    TRENDING_ACTIONS,
    TRENDING_WINDOW_DAYS,
)

logger = structlog.get_logger()

ScoredProducts = list[tuple[str, float]]


class Recommender:
    """Engine for ranking products under one of four strategies."""

    COUNTED_ACTIONS = frozenset(BehaviorAction(action) for action in TRENDING_ACTIONS)

    def __init__(
        self,
        catalog: CatalogAccessor,
        tracker: BehaviorTracker,
        preferences: PreferenceEngine,
        similarity: SimilarityIndex,
        clock: Clock = utc_now,
        trending_window: timedelta = timedelta(days=TRENDING_WINDOW_DAYS),
        new_arrival_window: timedelta = timedelta(days=NEW_ARRIVAL_WINDOW_DAYS),
        similarity_type: str = DEFAULT_SIMILARITY_TYPE,
        seed_view_limit: int = SIMILAR_SEED_VIEW_LIMIT,
        neighbor_limit: int = SIMILAR_NEIGHBOR_LIMIT,
        category_history_limit: int = CATEGORY_HISTORY_LIMIT,
        category_top_n: int = CATEGORY_TOP_N,
    ):
        self.catalog = catalog
        self.tracker = tracker
        self.preferences = preferences
        self.similarity = similarity
        self.clock = clock
        self.trending_window = trending_window
        self.new_arrival_window = new_arrival_window
        self.similarity_type = similarity_type
        self.seed_view_limit = seed_view_limit
        self.neighbor_limit = neighbor_limit
        self.category_history_limit = category_history_limit
        self.category_top_n = category_top_n

    def recommend(
        self, user_id: str, strategy: RecommendationStrategy, limit: int
    ) -> list[str]:
        """Ranked product ids for a user."""
        return [product_id for product_id, _ in self.rank(user_id, strategy, limit)]

    def rank(
        self, user_id: str, strategy: RecommendationStrategy, limit: int
    ) -> ScoredProducts:
        """Ranked ``(product_id, score)`` pairs for a user."""
        if strategy is RecommendationStrategy.TRENDING:
            return self.trending(limit)
        if strategy is RecommendationStrategy.PERSONALIZED:
            return self.personalized(user_id, limit)
        if strategy is RecommendationStrategy.SIMILAR:
            return self.similar(user_id, limit)
        return self.category_based(user_id, limit)

    # ==========================================================================
    # Strategies
    # ==========================================================================

    def trending(self, limit: int) -> ScoredProducts:
        """Most interacted-with products over the trailing window.

        Ties keep the order in which products first appeared in the window.
        """
        cutoff = self.clock() - self.trending_window
        events = self.tracker.since(cutoff, actions=self.COUNTED_ACTIONS)

        counts: Counter[str] = Counter(e.product_id for e in events if e.product_id)
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [(product_id, float(count)) for product_id, count in ranked[:limit]]

    def personalized(self, user_id: str, limit: int) -> ScoredProducts:
        """Every catalog product scored against the user's preference profile.

        Equal scores are ordered newest first, then by catalog order.
        """
        profile = self.preferences.get(user_id)
        now = self.clock()
        products = self.catalog.list_products()

        scored = [(p, self.score_product(p, profile, now)) for p in products]
        scored.sort(key=lambda item: item[0].created_at, reverse=True)
        scored.sort(key=lambda item: item[1], reverse=True)
        return [(p.id, score) for p, score in scored[:limit]]

    def similar(self, user_id: str, limit: int) -> ScoredProducts:
        """Neighbors of recently viewed products, scores summed across seeds.

        Users with no views get the trending list instead.
        """
        views = self.tracker.recent(
            user_id, limit=self.seed_view_limit, actions={BehaviorAction.VIEW}
        )
        seeds = unique_values(e.product_id for e in views)
        if not seeds:
            logger.debug("No viewed products, falling back to trending", user_id=user_id)
            return self.trending(limit)

        seed_set = set(seeds)
        totals: dict[str, float] = defaultdict(float)
        for seed in seeds:
            for neighbor in self.similarity.neighbors(
                seed, self.similarity_type, self.neighbor_limit
            ):
                if neighbor.product_id not in seed_set:
                    totals[neighbor.product_id] += neighbor.score

        ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
        return ranked[:limit]

    def category_based(self, user_id: str, limit: int) -> ScoredProducts:
        """Catalog products from the user's strongest category, in catalog order."""
        categories, counts = self.candidate_categories(user_id)
        if not categories:
            return []

        # only the strongest category is used; the rest of the list is informational
        top_category = categories[0]
        products = self.catalog.list_products(ProductFilter(category_id=top_category))
        score = float(counts.get(top_category, 0))
        return [(p.id, score) for p in products[:limit]]

    # ==========================================================================
    # Helper Methods
    # ==========================================================================

    def candidate_categories(self, user_id: str) -> tuple[list[str], Counter[str]]:
        """
        Categories a user has shown interest in.

        Returns the top categories by interaction count over recent behavior,
        followed by any profile categories not already listed, together with
        the interaction counts.
        """
        events = self.tracker.recent(user_id, limit=self.category_history_limit)

        counts: Counter[str] = Counter()
        products: dict[str, Product | None] = {}
        for event in events:
            if not event.product_id:
                continue
            if event.product_id not in products:
                products[event.product_id] = self.catalog.get_product(event.product_id)
            product = products[event.product_id]
            if product is not None and product.category_id:
                counts[product.category_id] += 1

        top = [category for category, _ in counts.most_common(self.category_top_n)]
        profile = self.preferences.get(user_id)
        if profile is not None:
            top = unique_values([*top, *profile.preferred_categories])
        return top, counts

    def score_product(
        self,
        product: Product,
        profile: UserPreferenceProfile | None,
        now: datetime,
    ) -> float:
        """Heuristic affinity score of one product for one profile."""
        score = 0.0

        if profile is not None:
            if product.category_id and product.category_id in profile.preferred_categories:
                score += PERSONALIZED_WEIGHTS["category"]
            if product.brand_id and product.brand_id in profile.preferred_brands:
                score += PERSONALIZED_WEIGHTS["brand"]
            if product.material and product.material in profile.preferred_materials:
                score += PERSONALIZED_WEIGHTS["material"]
            if (
                profile.has_price_range
                and profile.price_range_min <= product.price <= profile.price_range_max
            ):
                score += PERSONALIZED_WEIGHTS["price_range"]
            if profile.vip_products_only and product.vip_exclusive:
                score += PERSONALIZED_WEIGHTS["vip"]

        if product.featured:
            score += PERSONALIZED_WEIGHTS["featured"]
        if product.created_at >= now - self.new_arrival_window:
            score += PERSONALIZED_WEIGHTS["new_arrival"]

        return score
