"""Catalog accessors.

The engine reads products through ``CatalogAccessor`` only. Failures of the
HTTP accessor surface as ``UpstreamError`` and are never retried here.
"""

from collections.abc import Iterable
from typing import Any, Protocol

import httpx
import structlog
from pydantic import ValidationError

from personalization_service.config import Settings
from personalization_service.domain.models import Product, ProductFilter
from personalization_service.exceptions import UpstreamError

logger = structlog.get_logger()


class CatalogAccessor(Protocol):
    """Read contract required from the product catalog."""

    def list_products(self, filter: ProductFilter | None = None) -> list[Product]: ...

    def get_product(self, product_id: str) -> Product | None: ...


class InMemoryCatalog:
    """Catalog held in memory, in insertion order."""

    def __init__(self, products: Iterable[Product] = ()):
        self._products: dict[str, Product] = {}
        for product in products:
            self.add(product)

    def add(self, product: Product) -> None:
        self._products[product.id] = product

    def list_products(self, filter: ProductFilter | None = None) -> list[Product]:
        products = list(self._products.values())
        if filter is None:
            return products
        return [p for p in products if filter.matches(p)]

    def get_product(self, product_id: str) -> Product | None:
        return self._products.get(product_id)


class HttpCatalogClient:
    """Client for the storefront product API."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key
        self.client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpCatalogClient":
        return cls(
            base_url=settings.catalog_api_base_url,
            api_key=settings.catalog_api_key,
            timeout=settings.catalog_api_timeout,
        )

    def list_products(self, filter: ProductFilter | None = None) -> list[Product]:
        params: dict[str, Any] = {}
        if filter is not None:
            if filter.category_id is not None:
                params["categoryId"] = filter.category_id
            if filter.brand_id is not None:
                params["brandId"] = filter.brand_id
            if filter.featured is not None:
                params["featured"] = str(filter.featured).lower()

        payload = self._get("list_products", "/api/products", params=params)
        items = payload.get("products", []) if isinstance(payload, dict) else payload
        products = [self._parse("list_products", item) for item in items]
        # the API may ignore unknown query params, so filter again locally
        if filter is not None:
            products = [p for p in products if filter.matches(p)]
        return products

    def get_product(self, product_id: str) -> Product | None:
        payload = self._get("get_product", f"/api/products/{product_id}", missing_ok=True)
        if payload is None:
            return None
        return self._parse("get_product", payload)

    def close(self) -> None:
        self.client.close()

    def _get(
        self,
        operation: str,
        path: str,
        params: dict[str, Any] | None = None,
        missing_ok: bool = False,
    ) -> Any:
        try:
            response = self.client.get(path, params=params)
            if missing_ok and response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Catalog request failed", operation=operation, path=path, error=str(e))
            raise UpstreamError(operation, e) from e

    def _parse(self, operation: str, item: dict[str, Any]) -> Product:
        try:
            return Product.model_validate(item)
        except ValidationError as e:
            raise UpstreamError(operation, e) from e
