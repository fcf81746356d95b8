"""Pytest configuration and fixtures."""

from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from personalization_service.api.dependencies import get_engine
from personalization_service.config import Settings, get_settings
from personalization_service.domain.models import (
    BehaviorAction,
    BehaviorEventInput,
    Product,
    ProductFilter,
)
from personalization_service.infrastructure.catalog import InMemoryCatalog
from personalization_service.infrastructure.memory import in_memory_repository
from personalization_service.main import create_app
from personalization_service.services.personalization import PersonalizationEngine

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable clock for expiry and window tests."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now += timedelta(**kwargs)


class CountingCatalog(InMemoryCatalog):
    """In-memory catalog that records reads and can be switched to fail."""

    def __init__(self, products=()):
        super().__init__(products)
        self.list_calls = 0
        self.get_calls = 0
        self.error: Exception | None = None

    def list_products(self, filter: ProductFilter | None = None) -> list[Product]:
        self.list_calls += 1
        if self.error is not None:
            raise self.error
        return super().list_products(filter)

    def get_product(self, product_id: str) -> Product | None:
        self.get_calls += 1
        if self.error is not None:
            raise self.error
        return super().get_product(product_id)


def make_product(product_id: str, **overrides: Any) -> Product:
    """Helper to create an old, plain product."""
    fields: dict[str, Any] = {
        "id": product_id,
        "name": f"Product {product_id}",
        "category_id": "bongs",
        "brand_id": "brand-a",
        "material": "glass",
        "price": 50.0,
        "featured": False,
        "vip_exclusive": False,
        "created_at": NOW - timedelta(days=365),
    }
    fields.update(overrides)
    return Product(**fields)


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def track(engine: PersonalizationEngine):
    """Record one event through the engine."""

    def _track(
        user_id: str | None,
        product_id: str | None,
        action: BehaviorAction = BehaviorAction.VIEW,
        **kwargs: Any,
    ):
        return engine.track_behavior(
            BehaviorEventInput(user_id=user_id, product_id=product_id, action=action, **kwargs)
        )

    return _track


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def products() -> list[Product]:
    """Six bongs from two brands plus two rigs."""
    return [
        make_product("p1"),
        make_product("p2", brand_id="brand-b"),
        make_product("p3", material="silicone"),
        make_product("p4", featured=True),
        make_product("p5", created_at=NOW - timedelta(days=3)),
        make_product("p6", price=250.0, vip_exclusive=True),
        make_product("r1", category_id="rigs", brand_id="brand-c", material="quartz"),
        make_product("r2", category_id="rigs", brand_id="brand-c", material="quartz"),
    ]


@pytest.fixture
def catalog(products: list[Product]) -> CountingCatalog:
    return CountingCatalog(products)


@pytest.fixture
def engine(catalog: CountingCatalog, clock: FakeClock) -> PersonalizationEngine:
    """Engine over in-memory stores and the test catalog."""
    return PersonalizationEngine(catalog, in_memory_repository(), clock=clock)


@pytest.fixture
def test_settings() -> Settings:
    """Get test settings with overrides."""
    return Settings(app_env="test", debug=True)


@pytest.fixture
def app(test_settings: Settings, engine: PersonalizationEngine) -> Any:
    """Create test application sharing the ``engine`` fixture."""
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_engine] = lambda: engine
    return app


@pytest.fixture
def client(app: Any) -> Generator[TestClient, None, None]:
    """Create synchronous test client."""
    with TestClient(app) as test_client:
        yield test_client
