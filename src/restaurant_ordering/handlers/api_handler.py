"""FastAPI application exposing menu browsing, carts, checkout and orders."""

import logging
from decimal import Decimal

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from restaurant_ordering.auth.api_dependencies import (
    get_api_key_from_header,
    get_current_user_from_headers,
    require_user,
)
from restaurant_ordering.auth.api_key_validator import APIKeyValidator
from restaurant_ordering.errors import (
    CartError,
    CheckoutError,
    CrossTenantCartError,
    InvalidCartKeyError,
    InvalidStatusTransitionError,
    OrderingError,
    OrderNotFoundError,
    PersistenceError,
    UnauthorizedTransitionError,
)
from restaurant_ordering.models.catalog_models import Category, Product
from restaurant_ordering.models.order_models import (
    Cart,
    CartLineItem,
    CustomizationSelection,
    Order,
    OrderStatus,
)
from restaurant_ordering.models.user_models import CurrentUser
from restaurant_ordering.repositories.cart_storage import CartStorage
from restaurant_ordering.services.cart_store import CartStore
from restaurant_ordering.services.catalog_service import CatalogService
from restaurant_ordering.services.checkout_service import CheckoutService
from restaurant_ordering.services.order_lifecycle import OrderLifecycleService
from restaurant_ordering.services.order_message import generate_order_message, whatsapp_share_url

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class MenuResponse(BaseModel):
    """Response model for a restaurant menu."""

    restaurant_id: str
    selected_category_id: str | None = None
    categories: list[Category]
    products: list[Product]


class CartResponse(BaseModel):
    """Response model for a cart with its derived totals."""

    restaurant_id: str | None
    items: list[CartLineItem]
    total_items: int
    total_price: Decimal

    @classmethod
    def from_cart(cls, cart: Cart) -> "CartResponse":
        return cls(
            restaurant_id=cart.restaurant_id,
            items=cart.items,
            total_items=cart.total_items,
            total_price=cart.total_price,
        )


class AddToCartRequest(BaseModel):
    """Request model for adding a product to a cart."""

    restaurant_id: str
    product_id: str
    quantity: int = Field(default=1, ge=1)
    customizations: list[CustomizationSelection] = Field(default_factory=list)


class UpdateQuantityRequest(BaseModel):
    """Request model for changing a product's quantity (0 removes it)."""

    quantity: int


class CheckoutRequest(BaseModel):
    """Request model for checking out a cart."""

    contact_phone: str = ""
    notes: str | None = None
    delivery_address: str | None = None


class StatusUpdateRequest(BaseModel):
    """Request model for an order status change."""

    status: OrderStatus


class OrderTransitionsResponse(BaseModel):
    """Response model for the statuses an order can move to."""

    order_id: str
    status: OrderStatus
    available_statuses: list[OrderStatus]


class OrderMessageResponse(BaseModel):
    """Response model for the shareable order message."""

    order_id: str
    message: str
    share_url: str


def _status_code_for(error: OrderingError) -> int:
    if isinstance(error, CrossTenantCartError):
        return 409
    if isinstance(error, InvalidCartKeyError):
        return 400
    if isinstance(error, (CartError, CheckoutError)):
        return 422
    if isinstance(error, UnauthorizedTransitionError):
        return 403
    if isinstance(error, OrderNotFoundError):
        return 404
    if isinstance(error, InvalidStatusTransitionError):
        return 409
    if isinstance(error, PersistenceError):
        return 502
    return 400


def create_app(
    catalog_service: CatalogService,
    checkout_service: CheckoutService,
    lifecycle_service: OrderLifecycleService,
    cart_storage: CartStorage,
    api_keys: list[str],
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        catalog_service: Service composing menu views
        checkout_service: Service submitting carts as orders
        lifecycle_service: Service loading orders and changing their status
        cart_storage: Durable storage for per-session cart snapshots
        api_keys: List of valid gateway API keys

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Restaurant Ordering API",
        description="Menu browsing, carts, checkout and order status management",
        version="1.0.0",
    )

    app.state.catalog_service = catalog_service
    app.state.checkout_service = checkout_service
    app.state.lifecycle_service = lifecycle_service
    app.state.cart_storage = cart_storage
    app.state.api_key_validator = APIKeyValidator(api_keys=api_keys)

    @app.exception_handler(OrderingError)
    async def handle_ordering_error(_request: Request, exc: OrderingError) -> JSONResponse:
        status_code = _status_code_for(exc)
        if status_code >= 500:
            logger.error(f"{type(exc).__name__}: {exc}")
        return JSONResponse(
            status_code=status_code,
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    def validate_api_key(x_api_key: str | None = Header(None)) -> str:
        """Dependency to validate the gateway API key."""
        return get_api_key_from_header(x_api_key=x_api_key, validator=app.state.api_key_validator)

    def current_user(
        _api_key: str = Depends(validate_api_key),
        x_user_id: str | None = Header(None),
        x_user_role: str | None = Header(None),
        x_restaurant_id: str | None = Header(None),
    ) -> CurrentUser | None:
        """Dependency resolving the forwarded user identity."""
        return get_current_user_from_headers(x_user_id, x_user_role, x_restaurant_id)

    def cart_store_for(session_id: str) -> CartStore:
        """Build a store for one request; the saved snapshot is the only shared state."""
        storage: CartStorage = app.state.cart_storage
        return CartStore(storage=storage, storage_key=storage.check_key(f"cart_{session_id}"))

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy")

    @app.get("/restaurants/{restaurant_id}/menu", response_model=MenuResponse, tags=["Menu"])
    async def get_menu(
        restaurant_id: str,
        category_id: str | None = None,
        _api_key: str = Depends(validate_api_key),
    ) -> MenuResponse:
        """Get a restaurant's categories and available products."""
        view = await app.state.catalog_service.browse(restaurant_id, category_id)
        return MenuResponse(
            restaurant_id=view.restaurant_id,
            selected_category_id=view.selected_category_id,
            categories=view.categories,
            products=view.products,
        )

    @app.get("/carts/{session_id}", response_model=CartResponse, tags=["Cart"])
    async def get_cart(
        session_id: str,
        _api_key: str = Depends(validate_api_key),
    ) -> CartResponse:
        """Get the cart of a session."""
        return CartResponse.from_cart(cart_store_for(session_id).refresh())

    @app.post("/carts/{session_id}/items", response_model=CartResponse, tags=["Cart"])
    async def add_cart_item(
        session_id: str,
        request: AddToCartRequest,
        _api_key: str = Depends(validate_api_key),
    ) -> CartResponse:
        """Add a product from the catalog to the cart.

        The product is read from the catalog so prices never come from the
        client.
        """
        store = cart_store_for(session_id)
        product = await app.state.catalog_service.find_product(
            request.restaurant_id, request.product_id
        )
        if product is None:
            raise HTTPException(status_code=404, detail=f"Product {request.product_id} not found")

        cart = store.add_to_cart(product, request.quantity, request.customizations)
        return CartResponse.from_cart(cart)

    @app.patch(
        "/carts/{session_id}/items/{product_id}", response_model=CartResponse, tags=["Cart"]
    )
    async def update_cart_item(
        session_id: str,
        product_id: str,
        request: UpdateQuantityRequest,
        _api_key: str = Depends(validate_api_key),
    ) -> CartResponse:
        """Set the quantity of a product in the cart."""
        cart = cart_store_for(session_id).update_quantity(product_id, request.quantity)
        return CartResponse.from_cart(cart)

    @app.delete(
        "/carts/{session_id}/items/{product_id}", response_model=CartResponse, tags=["Cart"]
    )
    async def remove_cart_item(
        session_id: str,
        product_id: str,
        _api_key: str = Depends(validate_api_key),
    ) -> CartResponse:
        """Remove every line of a product from the cart."""
        cart = cart_store_for(session_id).remove_from_cart(product_id)
        return CartResponse.from_cart(cart)

    @app.delete("/carts/{session_id}", response_model=CartResponse, tags=["Cart"])
    async def clear_cart(
        session_id: str,
        _api_key: str = Depends(validate_api_key),
    ) -> CartResponse:
        """Empty the cart."""
        return CartResponse.from_cart(cart_store_for(session_id).clear_cart())

    @app.post(
        "/carts/{session_id}/checkout",
        response_model=Order,
        status_code=201,
        tags=["Checkout"],
    )
    async def checkout(
        session_id: str,
        request: CheckoutRequest,
        user: CurrentUser | None = Depends(current_user),
    ) -> Order:
        """Submit the cart as an order and clear it."""
        order: Order = await app.state.checkout_service.submit(
            cart_store_for(session_id),
            customer=user,
            contact_phone=request.contact_phone,
            notes=request.notes,
            delivery_address=request.delivery_address,
        )
        return order

    @app.get("/orders", response_model=list[Order], tags=["Orders"])
    async def list_orders(user: CurrentUser | None = Depends(current_user)) -> list[Order]:
        """List the orders visible to the current user."""
        orders: list[Order] = await app.state.lifecycle_service.load_orders(require_user(user))
        return orders

    @app.patch("/orders/{order_id}/status", response_model=Order, tags=["Orders"])
    async def update_order_status(
        order_id: str,
        request: StatusUpdateRequest,
        user: CurrentUser | None = Depends(current_user),
    ) -> Order:
        """Change an order's status (restaurant staff only)."""
        order: Order = await app.state.lifecycle_service.update_order_status(
            require_user(user), order_id, request.status
        )
        return order

    @app.get(
        "/orders/{order_id}/transitions", response_model=OrderTransitionsResponse, tags=["Orders"]
    )
    async def get_order_transitions(
        order_id: str,
        user: CurrentUser | None = Depends(current_user),
    ) -> OrderTransitionsResponse:
        """List the statuses the current user may move an order to."""
        actor = require_user(user)
        service: OrderLifecycleService = app.state.lifecycle_service
        order = await service.get_order(actor, order_id)
        return OrderTransitionsResponse(
            order_id=order.id,
            status=order.status,
            available_statuses=service.available_statuses(actor, order),
        )

    @app.get(
        "/orders/{order_id}/whatsapp", response_model=OrderMessageResponse, tags=["Orders"]
    )
    async def get_order_message(
        order_id: str,
        user: CurrentUser | None = Depends(current_user),
    ) -> OrderMessageResponse:
        """Get the WhatsApp message and share link for an order."""
        order = await app.state.lifecycle_service.get_order(require_user(user), order_id)
        return OrderMessageResponse(
            order_id=order.id,
            message=generate_order_message(order),
            share_url=whatsapp_share_url(order),
        )

    return app
