"""Unit tests for CatalogService."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from restaurant_ordering.models.catalog_models import Category, Product
from restaurant_ordering.services.catalog_client import CatalogClient
from restaurant_ordering.services.catalog_service import CatalogService


@pytest.mark.unit
class TestCatalogService:
    """Test suite for CatalogService."""

    @pytest.fixture
    def mock_client(
        self,
        restaurant_id: str,
        plain_product: Product,
        burger: Product,
        promo_product: Product,
    ) -> MagicMock:
        client = MagicMock(spec=CatalogClient)
        client.list_categories = AsyncMock(
            return_value=[
                Category(id="cat_pizzas", restaurant_id=restaurant_id, name="pizzas"),
                Category(id="cat_burgers", restaurant_id=restaurant_id, name="Burgers"),
            ]
        )
        client.list_products = AsyncMock(
            return_value=[
                plain_product,
                burger,
                promo_product.model_copy(update={"is_available": False}),
            ]
        )
        return client

    @pytest.fixture
    def service(self, mock_client: MagicMock) -> CatalogService:
        return CatalogService(catalog_client=mock_client)

    @pytest.mark.asyncio
    async def test_browse_all(self, service: CatalogService, restaurant_id: str) -> None:
        """Test the unfiltered menu view."""
        view = await service.browse(restaurant_id)

        assert view.restaurant_id == restaurant_id
        assert [c.name for c in view.categories] == ["Burgers", "pizzas"]
        assert [p.id for p in view.products] == ["prod_pizza", "prod_burger"]
        assert view.selected_category_id is None

    @pytest.mark.asyncio
    async def test_browse_category(
        self, service: CatalogService, mock_client: MagicMock, restaurant_id: str
    ) -> None:
        """Test that products are narrowed to the selected category."""
        view = await service.browse(restaurant_id, category_id="cat_burgers")

        assert [p.id for p in view.products] == ["prod_burger"]
        assert view.selected_category_id == "cat_burgers"
        mock_client.list_products.assert_awaited_once_with(restaurant_id, "cat_burgers")

    @pytest.mark.asyncio
    async def test_find_product(self, service: CatalogService, restaurant_id: str) -> None:
        """Test product lookup by id."""
        product = await service.find_product(restaurant_id, "prod_burger")

        assert product is not None
        assert product.name == "X-Burger"

    @pytest.mark.asyncio
    async def test_find_product_missing(self, service: CatalogService, restaurant_id: str) -> None:
        """Test that unknown products return None."""
        assert await service.find_product(restaurant_id, "prod_missing") is None
