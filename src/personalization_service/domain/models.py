"""Domain models for behavior tracking, preferences and recommendations.

Records are frozen pydantic models, so fields cannot be reassigned. Their
lists and dicts are still mutable; stores keep their own copies and hand
out copies, so changing a returned record never changes stored state.
"""

from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default engine clock."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so they compare with the engine clock."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def unique_values(values: Iterable[str]) -> list[str]:
    """Drop duplicates and empty values, keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        if value:
            seen.setdefault(value, None)
    return list(seen)


# =============================================================================
# Enums
# =============================================================================


class BehaviorAction(str, Enum):
    """Kinds of tracked user behavior."""

    VIEW = "view"
    ADD_TO_CART = "add_to_cart"
    PURCHASE = "purchase"
    WISHLIST = "wishlist"
    SEARCH = "search"


class RecommendationStrategy(str, Enum):
    """Recommendation algorithms served by the engine."""

    TRENDING = "trending"
    PERSONALIZED = "personalized"
    SIMILAR = "similar"
    CATEGORY_BASED = "category_based"


# =============================================================================
# Catalog
# =============================================================================


class Product(BaseModel):
    """Catalog product attributes consumed by the recommender.

    Accepts the storefront's camelCase payloads as well as field names.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    id: str
    name: str | None = None
    category_id: str | None = None
    brand_id: str | None = None
    material: str | None = None
    price: float = 0.0
    featured: bool = False
    vip_exclusive: bool = False
    in_stock: bool = True
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)


class ProductFilter(BaseModel):
    """Optional catalog filter; unset fields match everything."""

    model_config = ConfigDict(frozen=True)

    category_id: str | None = None
    brand_id: str | None = None
    featured: bool | None = None

    def matches(self, product: Product) -> bool:
        if self.category_id is not None and product.category_id != self.category_id:
            return False
        if self.brand_id is not None and product.brand_id != self.brand_id:
            return False
        if self.featured is not None and product.featured != self.featured:
            return False
        return True


# =============================================================================
# Behavior
# =============================================================================


class BehaviorEventInput(BaseModel):
    """A behavior event as submitted by the storefront."""

    user_id: str | None = Field(None, description="User identifier, absent for anonymous events")
    product_id: str | None = Field(None, description="Product the action refers to")
    session_id: str | None = Field(None, description="Storefront session identifier")
    action: BehaviorAction = Field(..., description="Kind of behavior")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Additional context")
    created_at: datetime | None = Field(None, description="Event time, defaults to now")

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)


class BehaviorEvent(BaseModel):
    """A stored behavior event."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    user_id: str | None = None
    product_id: str | None = None
    session_id: str | None = None
    action: BehaviorAction
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


# =============================================================================
# Preferences
# =============================================================================


class UserPreferenceProfile(BaseModel):
    """Per-user affinities inferred from behavior or set explicitly."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    user_id: str
    preferred_categories: list[str] = Field(default_factory=list)
    preferred_brands: list[str] = Field(default_factory=list)
    preferred_materials: list[str] = Field(default_factory=list)
    price_range_min: float | None = None
    price_range_max: float | None = None
    vip_products_only: bool = False
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def has_price_range(self) -> bool:
        return self.price_range_min is not None and self.price_range_max is not None


class PreferenceUpdate(BaseModel):
    """Explicit preference edit; only the fields that are set get applied."""

    preferred_categories: list[str] | None = None
    preferred_brands: list[str] | None = None
    preferred_materials: list[str] | None = None
    price_range_min: float | None = None
    price_range_max: float | None = None
    vip_products_only: bool | None = None

    @field_validator("preferred_categories", "preferred_brands", "preferred_materials")
    @classmethod
    def dedupe(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return unique_values(v)


# =============================================================================
# Similarity
# =============================================================================


class ProductSimilarityEdge(BaseModel):
    """Symmetric similarity relation between two products, stored once."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    product_id_a: str
    product_id_b: str
    similarity_type: str
    similarity_score: float
    created_at: datetime = Field(default_factory=utc_now)

    def other(self, product_id: str) -> str:
        """Return the product on the opposite side of the edge."""
        return self.product_id_b if product_id == self.product_id_a else self.product_id_a

    @property
    def key(self) -> tuple[str, str, str]:
        return edge_key(self.product_id_a, self.product_id_b, self.similarity_type)


def edge_key(product_a: str, product_b: str, similarity_type: str) -> tuple[str, str, str]:
    """Normalised storage key for an unordered product pair."""
    low, high = sorted((product_a, product_b))
    return low, high, similarity_type


class SimilarNeighbor(BaseModel):
    """A product reached from a similarity lookup, with its score."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    score: float


# =============================================================================
# Recommendation Cache
# =============================================================================


class RecommendationCacheEntry(BaseModel):
    """A computed recommendation list valid until ``expires_at``."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    user_id: str
    strategy: RecommendationStrategy
    product_ids: list[str]
    score: float | None = None
    expires_at: datetime
    created_at: datetime

    def is_live(self, now: datetime) -> bool:
        return self.expires_at > now
