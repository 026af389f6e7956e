"""Checkout service submitting carts as orders."""

import logging

from restaurant_ordering.errors import CheckoutError, PersistenceError
from restaurant_ordering.models.order_models import Order
from restaurant_ordering.models.user_models import CurrentUser
from restaurant_ordering.observability.decorators import traced
from restaurant_ordering.observability.metrics import (
    record_checkout_failure,
    record_order_created,
)
from restaurant_ordering.repositories.order_repository import OrderRepository
from restaurant_ordering.services.cart_store import CartStore
from restaurant_ordering.services.order_assembler import build_order_draft

logger = logging.getLogger(__name__)

GUEST_CUSTOMER_ID = "guest"


class CheckoutService:
    """Service turning a customer's cart into a persisted order.

    The cart is cleared only after the order is stored. Validation and
    persistence failures propagate with the cart untouched so the customer
    can correct the input or retry.
    """

    def __init__(self, order_repository: OrderRepository) -> None:
        """Initialize the CheckoutService.

        Args:
            order_repository: Persistence collaborator for orders
        """
        self.order_repository = order_repository

    @traced("checkout_submit", attributes={"ordering.operation": "checkout"})
    async def submit(
        self,
        cart_store: CartStore,
        customer: CurrentUser | None,
        contact_phone: str | None,
        notes: str | None = None,
        delivery_address: str | None = None,
    ) -> Order:
        """Submit the cart as an order.

        The cart is re-read from storage first so the order holds exactly what
        the customer last saved, whichever process saved it.

        Args:
            cart_store: Cart of the customer checking out
            customer: Authenticated customer, or None for a guest checkout
            contact_phone: Phone number for the restaurant (required)
            notes: Optional instructions for the restaurant
            delivery_address: Optional delivery address

        Returns:
            The created order

        Raises:
            CheckoutError: If the cart or contact details are not valid
            PersistenceError: If the cart could not be read or the order could not be stored
        """
        customer_id = customer.id if customer else GUEST_CUSTOMER_ID

        try:
            draft = build_order_draft(
                cart_store.refresh(),
                customer_id=customer_id,
                contact_phone=contact_phone,
                notes=notes,
                delivery_address=delivery_address,
            )
            order = self.order_repository.create_order(draft)
        except (CheckoutError, PersistenceError) as e:
            record_checkout_failure(type(e).__name__)
            raise

        cart_store.clear_cart()
        record_order_created(order.restaurant_id, order.total_price)
        logger.info(
            f"Order {order.id} placed by {customer_id} at restaurant {order.restaurant_id} "
            f"for {order.total_price}"
        )
        return order
