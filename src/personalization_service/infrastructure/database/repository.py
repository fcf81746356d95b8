"""SQLAlchemy-backed stores.

Each store opens a short session per call. Datetimes go in as naive UTC
and come back out as aware UTC.
"""

from collections.abc import Collection
from datetime import datetime, timezone

import structlog
from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session, sessionmaker

from personalization_service.domain.models import (
    BehaviorAction,
    BehaviorEvent,
    ProductSimilarityEdge,
    RecommendationCacheEntry,
    RecommendationStrategy,
    UserPreferenceProfile,
)
from personalization_service.infrastructure.database.connection import session_scope
from personalization_service.infrastructure.database.models import (
    BehaviorEventRecord,
    ProductSimilarityRecord,
    RecommendationCacheRecord,
    UserPreferenceRecord,
)
from personalization_service.infrastructure.repository import Repository
from shared.constants import BEHAVIOR_EVENTS_PER_USER

logger = structlog.get_logger()


def _to_db(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# Behavior
# =============================================================================


class SqlBehaviorStore:
    def __init__(
        self,
        session_factory: sessionmaker[Session],
        max_events_per_user: int = BEHAVIOR_EVENTS_PER_USER,
    ):
        self.session_factory = session_factory
        self.max_events_per_user = max_events_per_user

    def append(self, event: BehaviorEvent) -> None:
        with session_scope(self.session_factory) as session:
            session.add(
                BehaviorEventRecord(
                    id=event.id,
                    user_id=event.user_id,
                    product_id=event.product_id,
                    session_id=event.session_id,
                    action=event.action.value,
                    extra_data=event.metadata,
                    created_at=_to_db(event.created_at),
                )
            )
            session.flush()
            if event.user_id is not None:
                self._prune_user(session, event.user_id)

    def _prune_user(self, session: Session, user_id: str) -> None:
        overflow = session.scalars(
            select(BehaviorEventRecord.id)
            .where(BehaviorEventRecord.user_id == user_id)
            .order_by(BehaviorEventRecord.created_at.desc())
            .offset(self.max_events_per_user)
        ).all()
        if overflow:
            session.execute(
                delete(BehaviorEventRecord).where(BehaviorEventRecord.id.in_(overflow))
            )
            logger.debug("Pruned behavior events", user_id=user_id, removed=len(overflow))

    def recent_for_user(
        self,
        user_id: str,
        limit: int | None = None,
        actions: Collection[BehaviorAction] | None = None,
    ) -> list[BehaviorEvent]:
        query = (
            select(BehaviorEventRecord)
            .where(BehaviorEventRecord.user_id == user_id)
            .order_by(BehaviorEventRecord.created_at.desc())
        )
        if actions is not None:
            query = query.where(BehaviorEventRecord.action.in_([a.value for a in actions]))
        if limit is not None:
            query = query.limit(limit)

        with self.session_factory() as session:
            return [self._to_event(r) for r in session.scalars(query)]

    def since(
        self,
        cutoff: datetime,
        actions: Collection[BehaviorAction] | None = None,
    ) -> list[BehaviorEvent]:
        query = (
            select(BehaviorEventRecord)
            .where(BehaviorEventRecord.created_at >= _to_db(cutoff))
            .order_by(BehaviorEventRecord.created_at)
        )
        if actions is not None:
            query = query.where(BehaviorEventRecord.action.in_([a.value for a in actions]))

        with self.session_factory() as session:
            return [self._to_event(r) for r in session.scalars(query)]

    @staticmethod
    def _to_event(record: BehaviorEventRecord) -> BehaviorEvent:
        return BehaviorEvent(
            id=record.id,
            user_id=record.user_id,
            product_id=record.product_id,
            session_id=record.session_id,
            action=BehaviorAction(record.action),
            metadata=record.extra_data or {},
            created_at=_from_db(record.created_at),
        )


# =============================================================================
# Preferences
# =============================================================================


class SqlPreferenceStore:
    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def get(self, user_id: str) -> UserPreferenceProfile | None:
        with self.session_factory() as session:
            record = session.scalar(
                select(UserPreferenceRecord).where(UserPreferenceRecord.user_id == user_id)
            )
            if record is None:
                return None
            return UserPreferenceProfile(
                id=record.id,
                user_id=record.user_id,
                preferred_categories=record.preferred_categories or [],
                preferred_brands=record.preferred_brands or [],
                preferred_materials=record.preferred_materials or [],
                price_range_min=record.price_range_min,
                price_range_max=record.price_range_max,
                vip_products_only=record.vip_products_only,
                updated_at=_from_db(record.updated_at),
            )

    def save(self, profile: UserPreferenceProfile) -> None:
        with session_scope(self.session_factory) as session:
            record = session.scalar(
                select(UserPreferenceRecord).where(UserPreferenceRecord.user_id == profile.user_id)
            )
            if record is None:
                record = UserPreferenceRecord(id=profile.id, user_id=profile.user_id)
                session.add(record)

            record.preferred_categories = list(profile.preferred_categories)
            record.preferred_brands = list(profile.preferred_brands)
            record.preferred_materials = list(profile.preferred_materials)
            record.price_range_min = profile.price_range_min
            record.price_range_max = profile.price_range_max
            record.vip_products_only = profile.vip_products_only
            record.updated_at = _to_db(profile.updated_at)


# =============================================================================
# Similarity
# =============================================================================


class SqlSimilarityStore:
    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def upsert(self, edge: ProductSimilarityEdge) -> ProductSimilarityEdge:
        product_a, product_b, similarity_type = edge.key
        with session_scope(self.session_factory) as session:
            record = session.scalar(
                select(ProductSimilarityRecord).where(
                    ProductSimilarityRecord.product_id_a == product_a,
                    ProductSimilarityRecord.product_id_b == product_b,
                    ProductSimilarityRecord.similarity_type == similarity_type,
                )
            )
            if record is None:
                record = ProductSimilarityRecord(
                    id=edge.id,
                    product_id_a=product_a,
                    product_id_b=product_b,
                    similarity_type=similarity_type,
                )
                session.add(record)
            record.similarity_score = edge.similarity_score
            record.created_at = _to_db(edge.created_at)
            session.flush()
            return self._to_edge(record)

    def edges_for(
        self,
        product_id: str,
        similarity_type: str | None = None,
        limit: int | None = None,
    ) -> list[ProductSimilarityEdge]:
        query = (
            select(ProductSimilarityRecord)
            .where(
                or_(
                    ProductSimilarityRecord.product_id_a == product_id,
                    ProductSimilarityRecord.product_id_b == product_id,
                )
            )
            .order_by(
                ProductSimilarityRecord.similarity_score.desc(),
                ProductSimilarityRecord.product_id_a,
                ProductSimilarityRecord.product_id_b,
                ProductSimilarityRecord.similarity_type,
            )
        )
        if similarity_type is not None:
            query = query.where(ProductSimilarityRecord.similarity_type == similarity_type)
        if limit is not None:
            query = query.limit(limit)

        with self.session_factory() as session:
            return [self._to_edge(r) for r in session.scalars(query)]

    @staticmethod
    def _to_edge(record: ProductSimilarityRecord) -> ProductSimilarityEdge:
        return ProductSimilarityEdge(
            id=record.id,
            product_id_a=record.product_id_a,
            product_id_b=record.product_id_b,
            similarity_type=record.similarity_type,
            similarity_score=record.similarity_score,
            created_at=_from_db(record.created_at),
        )


# =============================================================================
# Recommendation Cache
# =============================================================================


class SqlCacheStore:
    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def get(
        self, user_id: str, strategy: RecommendationStrategy
    ) -> RecommendationCacheEntry | None:
        with self.session_factory() as session:
            record = session.scalar(
                select(RecommendationCacheRecord).where(
                    RecommendationCacheRecord.user_id == user_id,
                    RecommendationCacheRecord.strategy == strategy.value,
                )
            )
            if record is None:
                return None
            return RecommendationCacheEntry(
                id=record.id,
                user_id=record.user_id,
                strategy=RecommendationStrategy(record.strategy),
                product_ids=list(record.product_ids),
                score=record.score,
                expires_at=_from_db(record.expires_at),
                created_at=_from_db(record.created_at),
            )

    def save(self, entry: RecommendationCacheEntry) -> None:
        with session_scope(self.session_factory) as session:
            # replace, so a key never has two rows
            session.execute(
                delete(RecommendationCacheRecord).where(
                    RecommendationCacheRecord.user_id == entry.user_id,
                    RecommendationCacheRecord.strategy == entry.strategy.value,
                )
            )
            session.add(
                RecommendationCacheRecord(
                    id=entry.id,
                    user_id=entry.user_id,
                    strategy=entry.strategy.value,
                    product_ids=list(entry.product_ids),
                    score=entry.score,
                    expires_at=_to_db(entry.expires_at),
                    created_at=_to_db(entry.created_at),
                )
            )

    def purge_expired(self, now: datetime) -> int:
        with session_scope(self.session_factory) as session:
            result = session.execute(
                delete(RecommendationCacheRecord).where(
                    RecommendationCacheRecord.expires_at <= _to_db(now)
                )
            )
            return result.rowcount or 0


def sql_repository(
    session_factory: sessionmaker[Session],
    max_events_per_user: int = BEHAVIOR_EVENTS_PER_USER,
) -> Repository:
    """Build a repository with every store backed by the database."""
    return Repository(
        behavior=SqlBehaviorStore(session_factory, max_events_per_user),
        preferences=SqlPreferenceStore(session_factory),
        similarity=SqlSimilarityStore(session_factory),
        cache=SqlCacheStore(session_factory),
    )
