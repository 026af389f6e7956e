"""Cart store owning line items and the single-restaurant lock."""

import logging
from collections.abc import Callable
from decimal import Decimal

from pydantic import ValidationError

from restaurant_ordering.errors import (
    CrossTenantCartError,
    InvalidQuantityError,
    PersistenceError,
    ProductUnavailableError,
)
from restaurant_ordering.models.catalog_models import Product
from restaurant_ordering.models.order_models import Cart, CartLineItem, CustomizationSelection
from restaurant_ordering.observability.decorators import traced
from restaurant_ordering.observability.metrics import record_cart_rejection
from restaurant_ordering.repositories.cart_storage import DEFAULT_CART_KEY, CartStorage
from restaurant_ordering.services.pricing import (
    compact_selections,
    compute_line_total,
    validate_selections,
)

logger = logging.getLogger(__name__)

CartListener = Callable[[Cart], None]


class CartStore:
    """Cart for one customer session, backed by a storage key.

    The saved snapshot is the source of truth. Every mutation re-reads it,
    builds a new Cart, saves that and only then replaces the current cart and
    notifies subscribers. If reading or saving fails the previous cart stays
    in place. Several stores may share one storage key; each mutation starts
    from whatever the others last saved.

    Two identity rules coexist:
    - add_to_cart merges lines keyed by product id and customization selection
    - remove_from_cart and update_quantity are keyed by product id only
    """

    def __init__(self, storage: CartStorage, storage_key: str = DEFAULT_CART_KEY) -> None:
        """Initialize the store and restore any saved cart.

        An unreadable or invalid snapshot is logged and the store starts with
        an empty cart.

        Args:
            storage: Durable backend for cart snapshots
            storage_key: Key the snapshot is stored under (one per session)
        """
        self.storage = storage
        self.storage_key = storage_key
        self._listeners: list[CartListener] = []
        try:
            self._cart = self._load()
        except PersistenceError as e:
            logger.warning(f"Could not read cart snapshot {storage_key}, starting empty: {e}")
            self._cart = Cart()
        if not self._cart.is_empty:
            logger.info(f"Restored cart {storage_key} with {self._cart.total_items} items")

    @property
    def cart(self) -> Cart:
        """Current cart state."""
        return self._cart

    @property
    def items(self) -> tuple[CartLineItem, ...]:
        return tuple(self._cart.items)

    @property
    def restaurant_id(self) -> str | None:
        return self._cart.restaurant_id

    @property
    def total_items(self) -> int:
        return self._cart.total_items

    @property
    def total_price(self) -> Decimal:
        return self._cart.total_price

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a listener called with the cart after every mutation.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def refresh(self) -> Cart:
        """Reload the cart from storage, picking up writes made elsewhere.

        Raises:
            PersistenceError: If the snapshot cannot be read
        """
        self._cart = self._load()
        return self._cart

    def can_add_from_restaurant(self, restaurant_id: str) -> bool:
        """Return True if the cart is empty or locked to this restaurant."""
        return self._cart.is_empty or self._cart.restaurant_id == restaurant_id

    @traced("cart_add_to_cart", attributes={"ordering.operation": "cart"})
    def add_to_cart(
        self,
        product: Product,
        quantity: int,
        selections: list[CustomizationSelection] | None = None,
        validate: bool = True,
    ) -> Cart:
        """Add a configured product to the cart.

        Options with nothing selected are dropped before the line is built, so
        they never make two otherwise identical lines differ.

        Args:
            product: Product to add; a deep copy is stored
            quantity: Number of units (at least 1)
            selections: Customization selections for the line
            validate: Check selections against the product's options first

        Returns:
            The updated cart

        Raises:
            CrossTenantCartError: If the cart holds items from another restaurant
            InvalidQuantityError: If quantity is below 1
            ProductUnavailableError: If the product is not available
            InvalidCustomizationError: If validation is on and selections are invalid
            PersistenceError: If the snapshot cannot be read or saved
        """
        selections = compact_selections(list(selections or []))
        self.refresh()

        if not self.can_add_from_restaurant(product.restaurant_id):
            record_cart_rejection("cross_tenant")
            raise CrossTenantCartError(self._cart.restaurant_id or "", product.restaurant_id)

        if quantity < 1:
            raise InvalidQuantityError("Quantity must be at least 1")

        if not product.is_available:
            raise ProductUnavailableError(f"Product {product.name} is not available")

        if validate:
            validate_selections(product, selections)

        line_total = compute_line_total(product, quantity, selections)
        new_line = CartLineItem(
            product=product.model_copy(deep=True),
            quantity=quantity,
            customizations=[s.model_copy(deep=True) for s in selections],
            total_price=line_total,
        )

        items = list(self._cart.items)
        for index, existing in enumerate(items):
            if existing.identity == new_line.identity:
                items[index] = existing.model_copy(
                    update={
                        "quantity": existing.quantity + quantity,
                        "total_price": existing.total_price + line_total,
                    }
                )
                logger.info(
                    f"Merged {quantity}x {product.name} into existing cart line "
                    f"(now {items[index].quantity})"
                )
                break
        else:
            items.append(new_line)
            logger.info(f"Added {quantity}x {product.name} to cart")

        restaurant_id = self._cart.restaurant_id or product.restaurant_id
        return self._commit(Cart(restaurant_id=restaurant_id, items=items))

    def remove_from_cart(self, product_id: str) -> Cart:
        """Remove every line for a product, whatever its customizations."""
        self.refresh()
        items = [item for item in self._cart.items if item.product.id != product_id]
        restaurant_id = self._cart.restaurant_id if items else None
        logger.info(f"Removed product {product_id} from cart")
        return self._commit(Cart(restaurant_id=restaurant_id, items=items))

    def update_quantity(self, product_id: str, quantity: int) -> Cart:
        """Set the quantity of the first line for a product.

        A quantity of zero or less removes the product. The line total is
        recomputed from the stored snapshot and customizations.
        """
        if quantity <= 0:
            return self.remove_from_cart(product_id)

        self.refresh()
        items = list(self._cart.items)
        for index, item in enumerate(items):
            if item.product.id == product_id:
                items[index] = item.model_copy(
                    update={
                        "quantity": quantity,
                        "total_price": compute_line_total(
                            item.product, quantity, item.customizations
                        ),
                    }
                )
                break
        else:
            logger.debug(f"Product {product_id} not in cart, quantity unchanged")
            return self._cart

        return self._commit(Cart(restaurant_id=self._cart.restaurant_id, items=items))

    def clear_cart(self) -> Cart:
        """Empty the cart and release the restaurant lock."""
        logger.info("Cart cleared")
        return self._commit(Cart())

    def _commit(self, cart: Cart) -> Cart:
        self.storage.write(self.storage_key, cart.model_dump_json())
        self._cart = cart
        self._notify()
        return cart

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._cart)
            except Exception as e:
                logger.exception(f"Cart listener failed: {e}")

    def _load(self) -> Cart:
        blob = self.storage.read(self.storage_key)
        if blob is None:
            return Cart()

        try:
            cart = Cart.model_validate_json(blob)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Discarding unreadable cart snapshot {self.storage_key}: {e}")
            return Cart()

        if cart.is_empty:
            return Cart()

        restaurant_ids = {item.product.restaurant_id for item in cart.items}
        if len(restaurant_ids) != 1 or (
            cart.restaurant_id is not None and cart.restaurant_id not in restaurant_ids
        ):
            logger.warning(
                f"Discarding cart snapshot {self.storage_key} spanning several restaurants"
            )
            return Cart()
        if cart.restaurant_id is None:
            cart = cart.model_copy(update={"restaurant_id": restaurant_ids.pop()})

        return cart
