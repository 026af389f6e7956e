"""Component tests for the cart to order flow.

Real cart store, cart storage, checkout and lifecycle services are wired
together; only DynamoDB is replaced by dictionary-backed fake tables.
"""

from decimal import Decimal
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from restaurant_ordering.errors import CrossTenantCartError, MissingContactError
from restaurant_ordering.handlers.api_handler import create_app
from restaurant_ordering.models.catalog_models import Product
from restaurant_ordering.models.order_models import CustomizationSelection, OrderStatus
from restaurant_ordering.models.user_models import CurrentUser
from restaurant_ordering.repositories.cart_storage import DynamoDBCartStorage, FileCartStorage
from restaurant_ordering.repositories.order_repository import OrderRepository
from restaurant_ordering.services.cart_store import CartStore
from restaurant_ordering.services.catalog_service import CatalogService
from restaurant_ordering.services.checkout_service import CheckoutService
from restaurant_ordering.services.order_lifecycle import OrderLifecycleService
from restaurant_ordering.services.order_message import generate_order_message


class FakeOrdersTable:
    """Minimal in-memory stand-in for the orders table."""

    def __init__(self) -> None:
        self.items: dict[str, dict[str, Any]] = {}

    def put_item(self, Item: dict[str, Any], ConditionExpression: str) -> None:  # noqa: N803
        self.items[Item["id"]] = Item

    def get_item(self, Key: dict[str, str]) -> dict[str, Any]:  # noqa: N803
        item = self.items.get(Key["id"])
        return {"Item": item} if item else {}

    def query(self, **kwargs: Any) -> dict[str, Any]:
        key_name = kwargs["KeyConditionExpression"].split(" ")[0]
        value = kwargs["ExpressionAttributeValues"][":key"]
        matches = [i for i in self.items.values() if i[key_name] == value]
        return {"Items": sorted(matches, key=lambda i: i["created_at"], reverse=True)}

    def scan(self, **kwargs: Any) -> dict[str, Any]:
        return {"Items": list(self.items.values())}

    def update_item(self, **kwargs: Any) -> dict[str, Any]:
        order_id = kwargs["Key"]["id"]
        if order_id not in self.items:
            raise ClientError(
                {"Error": {"Code": "ConditionalCheckFailedException", "Message": "missing"}},
                "UpdateItem",
            )
        self.items[order_id] = {
            **self.items[order_id],
            "status": kwargs["ExpressionAttributeValues"][":status"],
        }
        return {"Attributes": self.items[order_id]}


class FakeCartsTable:
    """Minimal in-memory stand-in for the carts table."""

    def __init__(self) -> None:
        self.items: dict[str, dict[str, Any]] = {}

    def put_item(self, Item: dict[str, Any]) -> None:  # noqa: N803
        self.items[Item["cart_key"]] = Item

    def get_item(self, Key: dict[str, str], ConsistentRead: bool) -> dict[str, Any]:  # noqa: N803
        item = self.items.get(Key["cart_key"])
        return {"Item": item} if item else {}

    def delete_item(self, Key: dict[str, str]) -> None:  # noqa: N803
        self.items.pop(Key["cart_key"], None)


class FakeDynamoDB:
    def __init__(self) -> None:
        self.tables: dict[str, Any] = {"orders": FakeOrdersTable(), "carts": FakeCartsTable()}

    def Table(self, name: str) -> Any:  # noqa: N802
        return self.tables[name]


@pytest.mark.component
class TestOrderingFlow:
    """End-to-end cart, checkout and status flow."""

    @pytest.fixture
    def repository(self) -> OrderRepository:
        dynamodb: Any = FakeDynamoDB()
        return OrderRepository(dynamodb_resource=dynamodb, table_name="orders")

    @pytest.fixture
    def storage(self, tmp_path: Path) -> FileCartStorage:
        return FileCartStorage(tmp_path / "carts")

    @pytest.mark.asyncio
    async def test_cart_to_delivered_order(
        self,
        repository: OrderRepository,
        storage: FileCartStorage,
        plain_product: Product,
        burger: Product,
        customer: CurrentUser,
        staff: CurrentUser,
    ) -> None:
        """Test a customer order going from cart to delivered."""
        cart_store = CartStore(storage, storage_key="cart_session1")
        cart_store.add_to_cart(plain_product, 2)
        cart_store.add_to_cart(
            burger,
            1,
            [
                CustomizationSelection(option_id="opt_size", selected_item_ids=["size_l"]),
                CustomizationSelection(
                    option_id="opt_extras", selected_item_ids=["extra_cheese", "extra_bacon"]
                ),
            ],
        )
        assert cart_store.total_price == Decimal("130.80")

        # A new process picks the cart up from disk
        cart_store = CartStore(storage, storage_key="cart_session1")
        assert cart_store.total_items == 3

        order = await CheckoutService(repository).submit(
            cart_store, customer, "11999999999", notes="Sem cebola"
        )

        assert order.status == OrderStatus.PENDING
        assert order.total_price == Decimal("130.80")
        assert cart_store.cart.is_empty
        assert CartStore(storage, storage_key="cart_session1").cart.is_empty

        lifecycle = OrderLifecycleService(repository)
        assert [o.id for o in await lifecycle.load_orders(staff)] == [order.id]

        for status in (OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.DELIVERED):
            updated = await lifecycle.update_order_status(staff, order.id, status)
            assert updated.status == status

        stored = repository.get_order(order.id)
        assert stored is not None
        assert stored.status == OrderStatus.DELIVERED
        assert stored.items[1].customizations[1].selected_item_ids == [
            "extra_cheese",
            "extra_bacon",
        ]

        customer_orders = await OrderLifecycleService(repository).load_orders(customer)
        assert [o.status for o in customer_orders] == [OrderStatus.DELIVERED]

        message = generate_order_message(stored, customer_name="Ana")
        assert "*Total do pedido:* R$ 130,80" in message
        assert "   - Adicionais: Bacon, Queijo" in message
        assert "*Observações:* Sem cebola" in message

    @pytest.mark.asyncio
    async def test_rejections_keep_cart(
        self,
        repository: OrderRepository,
        storage: FileCartStorage,
        plain_product: Product,
        foreign_product: Product,
        customer: CurrentUser,
    ) -> None:
        """Test that rejected actions leave the persisted cart intact."""
        cart_store = CartStore(storage, storage_key="cart_session2")
        cart_store.add_to_cart(plain_product, 2)

        with pytest.raises(CrossTenantCartError):
            cart_store.add_to_cart(foreign_product, 1)

        with pytest.raises(MissingContactError):
            await CheckoutService(repository).submit(cart_store, customer, "")

        restored = CartStore(storage, storage_key="cart_session2")
        assert restored.total_price == Decimal("91.80")
        assert restored.restaurant_id == plain_product.restaurant_id

        cart_store.clear_cart()
        cart_store.add_to_cart(foreign_product, 1)
        assert cart_store.restaurant_id == foreign_product.restaurant_id


@pytest.mark.component
class TestCartsAcrossContainers:
    """Two app instances sharing DynamoDB, as warm Lambda containers do."""

    HEADERS = {
        "X-API-Key": "test-api-key",
        "X-User-Id": "user_customer",
        "X-User-Role": "customer",
    }

    def _container(self, dynamodb: Any, catalog: MagicMock) -> TestClient:
        repository = OrderRepository(dynamodb_resource=dynamodb, table_name="orders")
        app = create_app(
            catalog_service=catalog,
            checkout_service=CheckoutService(order_repository=repository),
            lifecycle_service=OrderLifecycleService(order_repository=repository),
            cart_storage=DynamoDBCartStorage(dynamodb_resource=dynamodb, table_name="carts"),
            api_keys=["test-api-key"],
        )
        return TestClient(app)

    def test_session_moves_between_containers(
        self, plain_product: Product, burger: Product
    ) -> None:
        """Test that no addition is lost when requests alternate containers."""
        dynamodb: Any = FakeDynamoDB()
        products = {p.id: p for p in (plain_product, burger)}
        catalog = MagicMock(spec=CatalogService)
        catalog.find_product = AsyncMock(
            side_effect=lambda restaurant_id, product_id: products.get(product_id)
        )
        first = self._container(dynamodb, catalog)
        second = self._container(dynamodb, catalog)

        first.post(
            "/carts/s1/items",
            json={"restaurant_id": "rest_123456", "product_id": "prod_pizza"},
            headers=self.HEADERS,
        )
        second.post(
            "/carts/s1/items",
            json={
                "restaurant_id": "rest_123456",
                "product_id": "prod_burger",
                "customizations": [{"option_id": "opt_size", "selected_item_ids": ["size_s"]}],
            },
            headers=self.HEADERS,
        )
        first.patch("/carts/s1/items/prod_pizza", json={"quantity": 2}, headers=self.HEADERS)

        cart = second.get("/carts/s1", headers=self.HEADERS).json()
        assert [item["product"]["id"] for item in cart["items"]] == ["prod_pizza", "prod_burger"]
        assert cart["total_price"] == "116.80"

        order = second.post(
            "/carts/s1/checkout", json={"contact_phone": "11999999999"}, headers=self.HEADERS
        )
        assert order.status_code == 201
        assert order.json()["total_price"] == "116.80"
        assert first.get("/carts/s1", headers=self.HEADERS).json()["total_items"] == 0
