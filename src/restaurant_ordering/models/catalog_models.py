"""Catalog data models.

These models represent restaurants, categories, products and their
customization options as returned by the catalog service. The cart keeps
deep copies of products, so later catalog edits never reprice old lines.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CustomizationItem(BaseModel):
    """One selectable value inside a customization option."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    id: str = Field(..., description="Unique identifier for the customization item")
    name: str = Field(..., description="Item name (e.g., 'Large')")
    price: Decimal = Field(default=Decimal("0"), description="Price delta per unit", ge=0)


class CustomizationOption(BaseModel):
    """A named choice group on a product (e.g., size, extras)."""

    id: str = Field(..., description="Unique identifier for the option")
    name: str = Field(..., description="Option name")
    required: bool = Field(default=False, description="Whether a selection is mandatory")
    multi_select: bool = Field(default=False, description="Whether several items may be chosen")
    items: list[CustomizationItem] = Field(default_factory=list, description="Selectable items")

    def find_item(self, item_id: str) -> CustomizationItem | None:
        """Return the item with the given id, or None if it no longer exists."""
        for item in self.items:
            if item.id == item_id:
                return item
        return None


class Product(BaseModel):
    """Product model."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    id: str = Field(..., description="Unique identifier for the product")
    restaurant_id: str = Field(..., description="Restaurant this product belongs to")
    category_id: str = Field(..., description="Category this product belongs to")
    name: str = Field(..., description="Product name")
    description: str | None = Field(None, description="Product description")
    price: Decimal = Field(..., description="Base price", ge=0)
    image_url: str | None = Field(None, description="URL to product image")
    is_promotion: bool = Field(default=False, description="Whether the promotion price applies")
    promotion_price: Decimal | None = Field(None, description="Promotional price", ge=0)
    is_available: bool = Field(default=True, description="Whether product can be ordered")
    customization_options: list[CustomizationOption] = Field(
        default_factory=list, description="Ordered customization option groups"
    )

    @property
    def active_price(self) -> Decimal:
        """Unit price before customizations."""
        if self.is_promotion and self.promotion_price is not None:
            return self.promotion_price
        return self.price

    def find_option(self, option_id: str) -> CustomizationOption | None:
        """Return the option with the given id, or None if it no longer exists."""
        for option in self.customization_options:
            if option.id == option_id:
                return option
        return None


class Category(BaseModel):
    """Menu category model."""

    id: str = Field(..., description="Unique identifier for the category")
    restaurant_id: str = Field(..., description="Restaurant this category belongs to")
    name: str = Field(..., description="Category name")
    description: str | None = Field(None, description="Category description")


class Restaurant(BaseModel):
    """Restaurant (tenant) model."""

    id: str = Field(..., description="Unique identifier for the restaurant")
    name: str = Field(..., description="Restaurant name")
    description: str | None = Field(None, description="Restaurant description")
    logo: str | None = Field(None, description="URL to logo image")
    cover_image: str | None = Field(None, description="URL to cover image")
    address: str | None = Field(None, description="Street address")
    phone: str | None = Field(None, description="Contact phone")
    owner_id: str | None = Field(None, description="User that owns the restaurant")
