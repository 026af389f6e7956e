"""Client for the hosted catalog API (restaurants, categories, products)."""

import logging
from typing import Any

import httpx

from restaurant_ordering.errors import PersistenceError
from restaurant_ordering.models.catalog_models import Category, Product, Restaurant

logger = logging.getLogger(__name__)


class CatalogClient:
    """HTTP client for reading catalog data.

    Uses service-to-service API key authentication. Transport and HTTP errors
    are logged and raised as PersistenceError.
    """

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0) -> None:
        """Initialize the catalog client.

        Args:
            base_url: Base URL of the catalog API (e.g., "https://api.example.com")
            api_key: API key for service-to-service authentication
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    async def _get(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any] | None:
        url = f"{self.base_url}{path}"
        headers = {"X-API-Key": self.api_key}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=headers, params=params)
                if response.status_code == 404:
                    return None
                response.raise_for_status()
                data: dict[str, Any] = response.json()
                return data

        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            logger.error(f"Catalog request to {path} failed: {e}")
            raise PersistenceError(f"Failed to fetch {path}") from e

    async def list_restaurants(self) -> list[Restaurant]:
        """Fetch all restaurants."""
        data = await self._get("/restaurants") or {}
        return [Restaurant(**r) for r in data.get("restaurants", [])]

    async def get_restaurant(self, restaurant_id: str) -> Restaurant | None:
        """Fetch one restaurant, or None if it does not exist."""
        data = await self._get(f"/restaurants/{restaurant_id}")
        if data is None:
            return None
        return Restaurant(**data)

    async def list_categories(self, restaurant_id: str) -> list[Category]:
        """Fetch a restaurant's categories.

        Args:
            restaurant_id: The restaurant to fetch categories for

        Returns:
            List of Category objects, empty if the restaurant has none
        """
        data = await self._get(f"/restaurants/{restaurant_id}/categories") or {}
        return [Category(**c) for c in data.get("categories", [])]

    async def list_products(
        self, restaurant_id: str, category_id: str | None = None
    ) -> list[Product]:
        """Fetch a restaurant's products with their customization options.

        Args:
            restaurant_id: The restaurant to fetch products for
            category_id: Optional category filter applied by the catalog API

        Returns:
            List of Product objects, empty if none match
        """
        params = {"category_id": category_id} if category_id else None
        data = await self._get(f"/restaurants/{restaurant_id}/products", params=params) or {}
        return [Product(**p) for p in data.get("products", [])]
