"""Error taxonomy for cart, checkout and order lifecycle operations.

Every error raised by the ordering core derives from OrderingError so the
HTTP layer can map the whole family with a handful of exception handlers.
None of these errors are fatal: callers surface them and keep prior state.
"""


class OrderingError(Exception):
    """Base class for all ordering errors."""


class CartError(OrderingError):
    """Base class for rejected cart mutations."""


class CrossTenantCartError(CartError):
    """Raised when adding a product from a restaurant other than the cart's."""

    def __init__(self, cart_restaurant_id: str, product_restaurant_id: str) -> None:
        self.cart_restaurant_id = cart_restaurant_id
        self.product_restaurant_id = product_restaurant_id
        super().__init__(
            f"Cart is locked to restaurant {cart_restaurant_id}; "
            f"cannot add product from restaurant {product_restaurant_id}. "
            "Clear the cart before ordering from another restaurant."
        )


class InvalidQuantityError(CartError):
    """Raised when a line item would be added with quantity below one."""


class ProductUnavailableError(CartError):
    """Raised when adding a product that is flagged as unavailable."""


class InvalidCustomizationError(CartError):
    """Raised when selections do not satisfy the product's declared options."""


class CheckoutError(OrderingError):
    """Base class for unmet checkout preconditions."""


class EmptyCartError(CheckoutError):
    """Raised when checking out a cart with no line items."""


class MissingContactError(CheckoutError):
    """Raised when checking out without a contact phone."""


class NoRestaurantError(CheckoutError):
    """Raised when the cart has items but no resolved restaurant."""


class OrderError(OrderingError):
    """Base class for order lifecycle errors."""


class OrderNotFoundError(OrderError):
    """Raised when an order id is unknown to the persistence collaborator."""


class UnauthorizedTransitionError(OrderError):
    """Raised when an actor may not change the status of an order."""


class InvalidStatusTransitionError(OrderError):
    """Raised when a status change is not allowed by the transition policy."""


class PersistenceError(OrderingError):
    """Wraps any failure reported by a storage, catalog or auth collaborator."""


class InvalidCartKeyError(PersistenceError):
    """Raised when a cart storage key contains characters a backend cannot store."""
