"""Unit tests for configuration defaults and backend wiring."""

from datetime import timedelta

import pytest

from personalization_service.api import dependencies
from personalization_service.config import Settings
from personalization_service.infrastructure.catalog import HttpCatalogClient, InMemoryCatalog
from personalization_service.infrastructure.memory import in_memory_repository
from personalization_service.services.personalization import PersonalizationEngine


class RecordingLogger:
    """Collects warning events."""

    def __init__(self) -> None:
        self.warnings: list[tuple[str, dict]] = []

    def warning(self, event: str, **kwargs) -> None:
        self.warnings.append((event, kwargs))

    def info(self, event: str, **kwargs) -> None:
        pass


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    for name in ("CATALOG_BACKEND", "TRENDING_WINDOW_DAYS", "SIMILARITY_TYPE", "CACHE_TTL_HOURS"):
        monkeypatch.delenv(name, raising=False)
    return Settings(_env_file=None)


class TestDefaults:
    """Settings and direct construction share one set of defaults."""

    def test_engine_defaults_match_settings(self, settings, catalog) -> None:
        direct = PersonalizationEngine(catalog, in_memory_repository())
        configured = PersonalizationEngine.from_settings(
            settings, catalog, in_memory_repository()
        )

        for attr in (
            "trending_window",
            "new_arrival_window",
            "similarity_type",
            "seed_view_limit",
            "neighbor_limit",
            "category_history_limit",
            "category_top_n",
        ):
            assert getattr(direct.recommender, attr) == getattr(configured.recommender, attr)
        assert direct.cache.ttl == configured.cache.ttl == timedelta(hours=24)

    def test_retention_defaults(self, settings) -> None:
        assert settings.behavior_events_per_user == 500
        assert settings.behavior_events_total == 100_000


class TestBuildCatalog:
    """Tests for catalog backend selection."""

    def test_memory_catalog_warns(self, settings, monkeypatch: pytest.MonkeyPatch) -> None:
        recorder = RecordingLogger()
        monkeypatch.setattr(dependencies, "logger", recorder)

        catalog = dependencies.build_catalog(settings)

        assert isinstance(catalog, InMemoryCatalog)
        assert len(recorder.warnings) == 1
        assert "CATALOG_BACKEND=http" in recorder.warnings[0][0]

    def test_http_catalog_does_not_warn(self, monkeypatch: pytest.MonkeyPatch) -> None:
        recorder = RecordingLogger()
        monkeypatch.setattr(dependencies, "logger", recorder)

        catalog = dependencies.build_catalog(
            Settings(_env_file=None, catalog_backend="http", catalog_api_base_url="http://catalog.test")
        )

        assert isinstance(catalog, HttpCatalogClient)
        assert recorder.warnings == []
        catalog.close()
