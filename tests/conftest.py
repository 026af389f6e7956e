"""Shared pytest fixtures and configuration for all tests."""

import os

# Entry modules skip application wiring when imported under test
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import UTC, datetime  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402

from restaurant_ordering.models.catalog_models import (  # noqa: E402
    CustomizationItem,
    CustomizationOption,
    Product,
)
from restaurant_ordering.models.order_models import (  # noqa: E402
    CartLineItem,
    CustomizationSelection,
    Order,
    OrderStatus,
)
from restaurant_ordering.models.user_models import CurrentUser, UserRole  # noqa: E402


@pytest.fixture
def restaurant_id() -> str:
    """Fixture providing a standard test restaurant ID."""
    return "rest_123456"


@pytest.fixture
def other_restaurant_id() -> str:
    """Fixture providing a second restaurant ID."""
    return "rest_999999"


@pytest.fixture
def plain_product(restaurant_id: str) -> Product:
    """Product without promotion or customizations."""
    return Product(
        id="prod_pizza",
        restaurant_id=restaurant_id,
        category_id="cat_pizzas",
        name="Pizza Margherita",
        price=Decimal("45.90"),
    )


@pytest.fixture
def burger(restaurant_id: str) -> Product:
    """Product with a required size option and optional multi-select extras."""
    return Product(
        id="prod_burger",
        restaurant_id=restaurant_id,
        category_id="cat_burgers",
        name="X-Burger",
        price=Decimal("25.00"),
        customization_options=[
            CustomizationOption(
                id="opt_size",
                name="Tamanho",
                required=True,
                multi_select=False,
                items=[
                    CustomizationItem(id="size_s", name="Pequeno", price=Decimal("0")),
                    CustomizationItem(id="size_l", name="Grande", price=Decimal("6.50")),
                ],
            ),
            CustomizationOption(
                id="opt_extras",
                name="Adicionais",
                required=False,
                multi_select=True,
                items=[
                    CustomizationItem(id="extra_bacon", name="Bacon", price=Decimal("4.00")),
                    CustomizationItem(id="extra_cheese", name="Queijo", price=Decimal("3.50")),
                ],
            ),
        ],
    )


@pytest.fixture
def promo_product(restaurant_id: str) -> Product:
    """Product with an active promotion."""
    return Product(
        id="prod_soda",
        restaurant_id=restaurant_id,
        category_id="cat_drinks",
        name="Refrigerante",
        price=Decimal("8.00"),
        is_promotion=True,
        promotion_price=Decimal("5.99"),
    )


@pytest.fixture
def foreign_product(other_restaurant_id: str) -> Product:
    """Product belonging to a different restaurant."""
    return Product(
        id="prod_sushi",
        restaurant_id=other_restaurant_id,
        category_id="cat_sushi",
        name="Combo Sushi",
        price=Decimal("79.90"),
    )


@pytest.fixture
def large_bacon() -> list[CustomizationSelection]:
    """Burger selections: large size with bacon."""
    return [
        CustomizationSelection(option_id="opt_size", selected_item_ids=["size_l"]),
        CustomizationSelection(option_id="opt_extras", selected_item_ids=["extra_bacon"]),
    ]


@pytest.fixture
def customer() -> CurrentUser:
    """Authenticated customer."""
    return CurrentUser(id="user_customer", role=UserRole.CUSTOMER, name="Ana")


@pytest.fixture
def staff(restaurant_id: str) -> CurrentUser:
    """Restaurant staff member of the standard restaurant."""
    return CurrentUser(id="user_staff", role=UserRole.RESTAURANT, restaurant_id=restaurant_id)


@pytest.fixture
def other_staff(other_restaurant_id: str) -> CurrentUser:
    """Restaurant staff member of another restaurant."""
    return CurrentUser(
        id="user_other_staff", role=UserRole.RESTAURANT, restaurant_id=other_restaurant_id
    )


@pytest.fixture
def admin() -> CurrentUser:
    """Administrator."""
    return CurrentUser(id="user_admin", role=UserRole.ADMIN)


@pytest.fixture
def pending_order(restaurant_id: str, plain_product: Product) -> Order:
    """Persisted order in pending status."""
    return Order(
        id="ord_abc123",
        restaurant_id=restaurant_id,
        customer_id="user_customer",
        items=[
            CartLineItem(
                product=plain_product,
                quantity=2,
                customizations=[],
                total_price=Decimal("91.80"),
            )
        ],
        total_price=Decimal("91.80"),
        status=OrderStatus.PENDING,
        created_at=datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
        contact_phone="11999999999",
    )
