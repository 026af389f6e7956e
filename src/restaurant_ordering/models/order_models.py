"""Cart and order models.

These models represent cart line items, the single-restaurant cart, order
drafts assembled at checkout and persisted orders, including their
conversion to and from DynamoDB items.
"""

import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from restaurant_ordering.models.catalog_models import Product

_STATUS_LABELS = {
    "pending": "Pendente",
    "confirmed": "Confirmado",
    "preparing": "Em preparo",
    "out_for_delivery": "Saiu para entrega",
    "delivered": "Entregue",
    "cancelled": "Cancelado",
}


class OrderStatus(str, Enum):
    """Enumeration of order status values."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        """Customer-facing display label."""
        return _STATUS_LABELS[self.value]

    @property
    def is_terminal(self) -> bool:
        """Whether the order has reached the end of its lifecycle."""
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class CustomizationSelection(BaseModel):
    """Items chosen for one customization option of a product."""

    option_id: str = Field(..., description="Customization option identifier")
    selected_item_ids: list[str] = Field(
        default_factory=list, description="Chosen item identifiers within the option"
    )

    @field_validator("selected_item_ids")
    @classmethod
    def validate_unique_items(cls, v: list[str]) -> list[str]:
        """Validate that an item is selected at most once."""
        if len(set(v)) != len(v):
            raise ValueError("selected_item_ids must not contain duplicates")
        return v


def selection_key(selections: list[CustomizationSelection]) -> str:
    """Serialize selections for line-item identity.

    Item ids are sorted within each option; option order is kept as given, so
    the same choices listed in a different option order count as a different
    line item.
    """
    return json.dumps(
        [[s.option_id, sorted(s.selected_item_ids)] for s in selections],
        separators=(",", ":"),
    )


class CartLineItem(BaseModel):
    """One configured product and quantity inside a cart or order."""

    product: Product = Field(..., description="Snapshot of the product at add time")
    quantity: int = Field(..., description="Number of units", gt=0)
    customizations: list[CustomizationSelection] = Field(
        default_factory=list, description="Selected customization items per option"
    )
    total_price: Decimal = Field(..., description="Line total including customizations", ge=0)

    @property
    def identity(self) -> tuple[str, str]:
        """Key used to merge repeated additions of the same configuration."""
        return (self.product.id, selection_key(self.customizations))


class Cart(BaseModel):
    """Cart locked to a single restaurant while it holds items."""

    restaurant_id: str | None = Field(None, description="Restaurant the cart is locked to")
    items: list[CartLineItem] = Field(default_factory=list, description="Ordered line items")

    @property
    def total_items(self) -> int:
        """Sum of line quantities."""
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> Decimal:
        """Sum of line totals."""
        return sum((item.total_price for item in self.items), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        """Whether the cart has no line items."""
        return not self.items


class OrderDraft(BaseModel):
    """Order payload assembled from a cart but not yet persisted."""

    model_config = ConfigDict(frozen=True)

    restaurant_id: str = Field(..., description="Restaurant receiving the order")
    customer_id: str = Field(..., description="Customer placing the order")
    items: tuple[CartLineItem, ...] = Field(..., description="Snapshot of cart line items")
    total_price: Decimal = Field(..., description="Order total", ge=0)
    status: OrderStatus = Field(default=OrderStatus.PENDING, description="Initial status")
    contact_phone: str = Field(..., description="Phone number for the restaurant to call")
    notes: str | None = Field(None, description="Free-text instructions")
    delivery_address: str | None = Field(None, description="Delivery address")


class Order(BaseModel):
    """Persisted order.

    Stored in DynamoDB with id as partition key and GSIs on restaurant_id and
    customer_id.
    """

    id: str = Field(..., description="Unique order identifier")
    restaurant_id: str = Field(..., description="Restaurant receiving the order")
    customer_id: str = Field(..., description="Customer who placed the order")
    items: list[CartLineItem] = Field(..., description="Line items at submission time")
    total_price: Decimal = Field(..., description="Order total", ge=0)
    status: OrderStatus = Field(..., description="Current order status")
    created_at: datetime = Field(..., description="Order creation timestamp")
    contact_phone: str = Field(..., description="Phone number for the restaurant to call")
    notes: str | None = Field(None, description="Free-text instructions")
    delivery_address: str | None = Field(None, description="Delivery address")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Prices are stored as strings so no float ever reaches DynamoDB.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "customer_id": self.customer_id,
            "items": [line.model_dump(mode="json") for line in self.items],
            "total_price": str(self.total_price),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "contact_phone": self.contact_phone,
        }

        if self.notes is not None:
            item["notes"] = self.notes

        if self.delivery_address is not None:
            item["delivery_address"] = self.delivery_address

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Order":
        """Create Order from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Order: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": item["id"],
            "restaurant_id": item["restaurant_id"],
            "customer_id": item["customer_id"],
            "items": [CartLineItem.model_validate(line) for line in item.get("items", [])],
            "total_price": Decimal(str(item["total_price"])),
            "status": OrderStatus(item["status"]),
            "created_at": datetime.fromisoformat(item["created_at"]),
            "contact_phone": item["contact_phone"],
        }

        if "notes" in item:
            data["notes"] = item["notes"]

        if "delivery_address" in item:
            data["delivery_address"] = item["delivery_address"]

        return cls(**data)
