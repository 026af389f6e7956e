"""Order assembler turning cart state into an order draft."""

import logging
from decimal import Decimal

from restaurant_ordering.errors import (
    CheckoutError,
    EmptyCartError,
    MissingContactError,
    NoRestaurantError,
)
from restaurant_ordering.models.order_models import Cart, OrderDraft, OrderStatus

logger = logging.getLogger(__name__)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def build_order_draft(
    cart: Cart,
    customer_id: str,
    contact_phone: str | None,
    notes: str | None = None,
    delivery_address: str | None = None,
) -> OrderDraft:
    """Assemble an immutable order draft from the cart.

    The cart is not modified; clearing it after a successful submission is the
    caller's job.

    Args:
        cart: Cart to check out
        customer_id: Customer placing the order
        contact_phone: Phone number for the restaurant (required)
        notes: Optional instructions for the restaurant
        delivery_address: Optional delivery address

    Returns:
        OrderDraft with status pending and a deep copy of the cart lines

    Raises:
        EmptyCartError: If the cart has no items
        MissingContactError: If contact_phone is empty
        NoRestaurantError: If the cart has no restaurant lock
    """
    if cart.is_empty:
        raise EmptyCartError("Your cart is empty")

    phone = _clean(contact_phone)
    if phone is None:
        raise MissingContactError("Please provide a contact phone")

    if not cart.restaurant_id:
        raise NoRestaurantError("Cart has items but no restaurant")

    items = tuple(item.model_copy(deep=True) for item in cart.items)
    total_price = sum((item.total_price for item in items), Decimal("0"))

    if total_price != cart.total_price:
        logger.error(f"Draft total {total_price} differs from cart total {cart.total_price}")
        raise CheckoutError("Cart total is inconsistent with its line items")

    return OrderDraft(
        restaurant_id=cart.restaurant_id,
        customer_id=customer_id,
        items=items,
        total_price=total_price,
        status=OrderStatus.PENDING,
        contact_phone=phone,
        notes=_clean(notes),
        delivery_address=_clean(delivery_address),
    )
