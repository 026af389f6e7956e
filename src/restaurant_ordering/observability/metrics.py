"""Custom metrics for the ordering service."""

from decimal import Decimal

from opentelemetry import metrics

meter = metrics.get_meter("ordering-svc")

orders_created_counter = meter.create_counter(
    name="orders_created_total",
    description="Total number of orders created by restaurant",
    unit="1",
)

checkout_failure_counter = meter.create_counter(
    name="checkout_failure_total",
    description="Total number of rejected or failed checkouts by reason",
    unit="1",
)

cart_rejection_counter = meter.create_counter(
    name="cart_rejection_total",
    description="Total number of rejected add-to-cart attempts by reason",
    unit="1",
)

status_transition_counter = meter.create_counter(
    name="order_status_transition_total",
    description="Total number of order status changes by target status",
    unit="1",
)

order_total_histogram = meter.create_histogram(
    name="order_total_amount",
    description="Distribution of order totals",
    unit="BRL",
)


def record_order_created(restaurant_id: str, total_price: Decimal) -> None:
    """Record a successfully persisted order.

    Args:
        restaurant_id: Restaurant receiving the order
        total_price: Order total
    """
    orders_created_counter.add(1, {"restaurant_id": restaurant_id})
    order_total_histogram.record(float(total_price), {"restaurant_id": restaurant_id})


def record_checkout_failure(reason: str) -> None:
    """Record a checkout that did not produce an order.

    Args:
        reason: Error class name (e.g., "EmptyCartError", "PersistenceError")
    """
    checkout_failure_counter.add(1, {"reason": reason})


def record_cart_rejection(reason: str) -> None:
    """Record an add-to-cart attempt that was rejected."""
    cart_rejection_counter.add(1, {"reason": reason})


def record_status_transition(from_status: str, to_status: str) -> None:
    """Record an applied order status change."""
    status_transition_counter.add(1, {"from_status": from_status, "to_status": to_status})
