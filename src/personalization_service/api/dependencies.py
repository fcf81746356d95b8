"""Shared engine instance for the API."""

from functools import lru_cache

import structlog

from personalization_service.config import Settings, get_settings
from personalization_service.infrastructure.catalog import (
    CatalogAccessor,
    HttpCatalogClient,
    InMemoryCatalog,
)
from personalization_service.infrastructure.database.connection import (
    create_tables,
    get_engine as get_db_engine,
    get_session_factory,
)
from personalization_service.infrastructure.database.repository import sql_repository
from personalization_service.infrastructure.memory import in_memory_repository
from personalization_service.infrastructure.redis import RedisCacheStore, get_redis_client
from personalization_service.infrastructure.repository import Repository
from personalization_service.services.personalization import PersonalizationEngine

logger = structlog.get_logger()


def build_catalog(settings: Settings) -> CatalogAccessor:
    """
    Catalog accessor selected by ``catalog_backend``.

    The memory backend starts empty and is only useful when products are
    added in process, as the tests do. Served deployments need
    ``catalog_backend=http``; with an empty catalog the personalized and
    category_based strategies return, and cache, empty lists.
    """
    if settings.catalog_backend == "http":
        return HttpCatalogClient.from_settings(settings)

    logger.warning(
        "Memory catalog is empty, set CATALOG_BACKEND=http to serve real products",
        catalog_backend=settings.catalog_backend,
    )
    return InMemoryCatalog()


def build_repository(settings: Settings) -> Repository:
    """Assemble the stores selected by configuration."""
    if settings.storage_backend == "database":
        db_engine = get_db_engine(settings)
        create_tables(db_engine)
        repository = sql_repository(
            get_session_factory(db_engine),
            max_events_per_user=settings.behavior_events_per_user,
        )
    else:
        repository = in_memory_repository(
            max_events=settings.behavior_events_total,
            max_events_per_user=settings.behavior_events_per_user,
        )

    if settings.cache_backend == "redis":
        repository.cache = RedisCacheStore(get_redis_client(settings))

    logger.info(
        "Personalization storage configured",
        storage_backend=settings.storage_backend,
        cache_backend=settings.cache_backend,
    )
    return repository


@lru_cache
def get_engine() -> PersonalizationEngine:
    """Get the process-wide engine instance."""
    settings = get_settings()
    return PersonalizationEngine.from_settings(
        settings,
        catalog=build_catalog(settings),
        repository=build_repository(settings),
    )
