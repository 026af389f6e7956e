"""Read-side composition of categories and products for menu browsing."""

import logging
from dataclasses import dataclass, field

from restaurant_ordering.models.catalog_models import Category, Product
from restaurant_ordering.services.catalog_client import CatalogClient

logger = logging.getLogger(__name__)


@dataclass
class MenuView:
    """Menu of one restaurant, optionally narrowed to a category.

    Attributes:
        restaurant_id: Restaurant being browsed
        categories: All categories, sorted by name
        products: Available products in the selected category
        selected_category_id: Category filter, None for all products
    """

    restaurant_id: str
    categories: list[Category] = field(default_factory=list)
    products: list[Product] = field(default_factory=list)
    selected_category_id: str | None = None


class CatalogService:
    """Service composing catalog queries into menu views."""

    def __init__(self, catalog_client: CatalogClient) -> None:
        self.catalog_client = catalog_client

    async def browse(self, restaurant_id: str, category_id: str | None = None) -> MenuView:
        """Build the menu view for a restaurant and optional category."""
        categories = await self.catalog_client.list_categories(restaurant_id)
        products = await self.catalog_client.list_products(restaurant_id, category_id)

        if category_id:
            products = [p for p in products if p.category_id == category_id]

        return MenuView(
            restaurant_id=restaurant_id,
            categories=sorted(categories, key=lambda c: c.name.lower()),
            products=[p for p in products if p.is_available],
            selected_category_id=category_id,
        )

    async def find_product(self, restaurant_id: str, product_id: str) -> Product | None:
        """Return a product of the restaurant by id, or None."""
        products = await self.catalog_client.list_products(restaurant_id)
        for product in products:
            if product.id == product_id:
                return product
        logger.info(f"Product {product_id} not found in restaurant {restaurant_id}")
        return None
