"""Order status state machine and the service applying it."""

import logging

from restaurant_ordering.errors import (
    InvalidStatusTransitionError,
    OrderNotFoundError,
    UnauthorizedTransitionError,
)
from restaurant_ordering.models.order_models import Order, OrderStatus
from restaurant_ordering.models.user_models import CurrentUser, UserRole
from restaurant_ordering.observability.decorators import traced
from restaurant_ordering.observability.metrics import record_status_transition
from restaurant_ordering.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)


def can_transition(
    current: OrderStatus, target: OrderStatus, lock_terminal_states: bool = False
) -> bool:
    """Return True if an order may move from current to target.

    Setting a status to itself is never a transition. With
    lock_terminal_states, delivered and cancelled orders cannot change.
    """
    if current == target:
        return False
    if lock_terminal_states and current.is_terminal:
        return False
    return True


def available_transitions(
    current: OrderStatus, lock_terminal_states: bool = False
) -> list[OrderStatus]:
    """List the statuses an order in the given status may move to."""
    return [s for s in OrderStatus if can_transition(current, s, lock_terminal_states)]


def can_view_order(user: CurrentUser, order: Order) -> bool:
    """Return True if the user may read the order."""
    if user.role == UserRole.ADMIN:
        return True
    if user.role == UserRole.CUSTOMER:
        return order.customer_id == user.id
    return user.manages_restaurant(order.restaurant_id)


class OrderLifecycleService:
    """Loads orders for an actor and applies status changes.

    The repository is the source of truth. The service keeps the last loaded
    order list as a view for display, refreshes an entry whenever it reads or
    updates that order, and never decides anything from the view. Failures
    propagate and leave the view untouched.
    """

    def __init__(
        self, order_repository: OrderRepository, lock_terminal_states: bool = False
    ) -> None:
        """Initialize the OrderLifecycleService.

        Args:
            order_repository: Persistence collaborator for orders
            lock_terminal_states: Forbid leaving delivered/cancelled
        """
        self.order_repository = order_repository
        self.lock_terminal_states = lock_terminal_states
        self.orders: list[Order] = []

    async def load_orders(self, actor: CurrentUser) -> list[Order]:
        """Load the orders visible to the actor into the in-memory view."""
        self.orders = self.order_repository.list_orders(actor)
        logger.info(f"Loaded {len(self.orders)} orders for {actor.role.value} {actor.id}")
        return self.orders

    async def get_order(self, actor: CurrentUser, order_id: str) -> Order:
        """Return the persisted state of one order the actor may read.

        Raises:
            OrderNotFoundError: If the order does not exist or is not visible
            PersistenceError: If the order cannot be read
        """
        order = self.order_repository.get_order(order_id)
        if order is None or not can_view_order(actor, order):
            raise OrderNotFoundError(f"Order {order_id} not found")
        self._remember(order)
        return order

    def available_statuses(self, actor: CurrentUser, order: Order) -> list[OrderStatus]:
        """List the statuses the actor may move the order to.

        Empty for anyone but staff of the order's restaurant.
        """
        if not actor.manages_restaurant(order.restaurant_id):
            return []
        return available_transitions(order.status, self.lock_terminal_states)

    @traced("order_update_status", attributes={"ordering.operation": "lifecycle"})
    async def update_order_status(
        self, actor: CurrentUser, order_id: str, new_status: OrderStatus
    ) -> Order:
        """Change an order's status on behalf of restaurant staff.

        The current status is always read from the repository, so changes
        made by other workers are seen. Re-selecting the persisted status is a
        no-op: the order is returned as is and nothing is written.

        Args:
            actor: User requesting the change
            order_id: Order to update
            new_status: Target status

        Returns:
            The order as persisted

        Raises:
            OrderNotFoundError: If the order does not exist
            UnauthorizedTransitionError: If the actor is not staff of the order's restaurant
            InvalidStatusTransitionError: If terminal states are locked and the order is final
            PersistenceError: If the order cannot be read or updated
        """
        order = self.order_repository.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(f"Order {order_id} not found")

        if not actor.manages_restaurant(order.restaurant_id):
            logger.warning(f"User {actor.id} may not change status of order {order_id}")
            raise UnauthorizedTransitionError(
                f"Only staff of restaurant {order.restaurant_id} can update this order"
            )

        if order.status == new_status:
            logger.info(f"Order {order_id} already {new_status.value}, nothing to do")
            self._remember(order)
            return order

        if not can_transition(order.status, new_status, self.lock_terminal_states):
            raise InvalidStatusTransitionError(
                f"Order {order_id} is {order.status.value} and cannot become {new_status.value}"
            )

        updated = self.order_repository.update_order_status(order_id, new_status)

        self._remember(updated)
        record_status_transition(order.status.value, updated.status.value)
        logger.info(f"Order {order_id} status {order.status.value} -> {updated.status.value}")
        return updated

    def _remember(self, order: Order) -> None:
        self.orders = [order if o.id == order.id else o for o in self.orders]
