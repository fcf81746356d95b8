"""SQLAlchemy models for the personalization stores.

Timestamps are stored as naive UTC so the same tables work on PostgreSQL
and SQLite.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""


# =============================================================================
# Behavior Events
# =============================================================================


class BehaviorEventRecord(Base):
    """Append-only behavior log."""

    __tablename__ = "behavior_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(255), index=True)
    product_id: Mapped[Optional[str]] = mapped_column(String(255), index=True)
    session_id: Mapped[Optional[str]] = mapped_column(String(255))
    action: Mapped[str] = mapped_column(String(32), nullable=False)

    # "metadata" is reserved on declarative models
    extra_data: Mapped[dict] = mapped_column(JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    __table_args__ = (
        Index("ix_behavior_events_user_created", "user_id", "created_at"),
    )


# =============================================================================
# User Preferences
# =============================================================================


class UserPreferenceRecord(Base):
    """Preference profile, one row per user."""

    __tablename__ = "user_preferences"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    preferred_categories: Mapped[list] = mapped_column(JSON, default=list)
    preferred_brands: Mapped[list] = mapped_column(JSON, default=list)
    preferred_materials: Mapped[list] = mapped_column(JSON, default=list)
    price_range_min: Mapped[Optional[float]] = mapped_column(Float)
    price_range_max: Mapped[Optional[float]] = mapped_column(Float)
    vip_products_only: Mapped[bool] = mapped_column(Boolean, default=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


# =============================================================================
# Product Similarity
# =============================================================================


class ProductSimilarityRecord(Base):
    """Similarity edge; product_id_a sorts before product_id_b."""

    __tablename__ = "product_similarity"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    product_id_a: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    product_id_b: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    similarity_type: Mapped[str] = mapped_column(String(64), nullable=False)
    similarity_score: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "product_id_a",
            "product_id_b",
            "similarity_type",
            name="uq_product_similarity_pair",
        ),
    )


# =============================================================================
# Recommendation Cache
# =============================================================================


class RecommendationCacheRecord(Base):
    """Cached recommendation list, one row per (user, strategy)."""

    __tablename__ = "recommendation_cache"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    strategy: Mapped[str] = mapped_column(String(32), nullable=False)
    product_ids: Mapped[list] = mapped_column(JSON, nullable=False)
    score: Mapped[Optional[float]] = mapped_column(Float)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "strategy", name="uq_recommendation_cache_key"),
    )
