"""Application configuration management."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.constants import (
    BEHAVIOR_EVENTS_PER_USER,
    BEHAVIOR_EVENTS_TOTAL,
    CATEGORY_HISTORY_LIMIT,
    CATEGORY_TOP_N,
    DEFAULT_SIMILARITY_TYPE,
    NEW_ARRIVAL_WINDOW_DAYS,
    RECOMMENDATION_CACHE_TTL_HOURS,
    SIMILAR_NEIGHBOR_LIMIT,
    SIMILAR_SEED_VIEW_LIMIT,
    TRENDING_WINDOW_DAYS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = "storefront-personalization"
    app_env: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # API Settings
    # -------------------------------------------------------------------------
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 4
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    # -------------------------------------------------------------------------
    # Catalog (storefront product API)
    # -------------------------------------------------------------------------
    # "memory" starts empty; deployments use "http"
    catalog_backend: Literal["memory", "http"] = "memory"
    catalog_api_base_url: str = "http://localhost:3000"
    catalog_api_key: str = ""
    catalog_api_timeout: int = 10

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------
    storage_backend: Literal["memory", "database"] = "memory"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "storefront"
    postgres_password: str = ""
    postgres_db: str = "storefront"
    database_url_override: str = ""
    db_pool_size: int = 5
    db_max_overflow: int = 10

    @property
    def database_url(self) -> str:
        """Construct the SQLAlchemy connection URL."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # -------------------------------------------------------------------------
    # Recommendation Cache
    # -------------------------------------------------------------------------
    cache_backend: Literal["memory", "redis"] = "memory"
    cache_ttl_hours: int = RECOMMENDATION_CACHE_TTL_HOURS
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str = ""
    redis_db: int = 0

    @property
    def redis_url(self) -> str:
        """Construct Redis connection URL."""
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # -------------------------------------------------------------------------
    # Recommendation Settings
    # -------------------------------------------------------------------------
    trending_window_days: int = TRENDING_WINDOW_DAYS
    new_arrival_window_days: int = NEW_ARRIVAL_WINDOW_DAYS
    similar_seed_view_limit: int = SIMILAR_SEED_VIEW_LIMIT
    similar_neighbor_limit: int = SIMILAR_NEIGHBOR_LIMIT
    similarity_type: str = DEFAULT_SIMILARITY_TYPE
    category_history_limit: int = CATEGORY_HISTORY_LIMIT
    category_top_n: int = CATEGORY_TOP_N

    # -------------------------------------------------------------------------
    # Behavior Retention
    # -------------------------------------------------------------------------
    behavior_events_per_user: int = BEHAVIOR_EVENTS_PER_USER
    behavior_events_total: int = BEHAVIOR_EVENTS_TOTAL


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
