"""DynamoDB repository for orders.

Orders are stored with id as partition key. Two Global Secondary Indexes,
``restaurant_id-index`` and ``customer_id-index``, both sorted by created_at,
serve the per-tenant and per-customer listings. Every DynamoDB failure is
logged and re-raised as PersistenceError so callers can keep prior state.
"""

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from restaurant_ordering.errors import OrderNotFoundError, PersistenceError
from restaurant_ordering.models.order_models import Order, OrderDraft, OrderStatus
from restaurant_ordering.models.user_models import CurrentUser, UserRole

logger = logging.getLogger(__name__)


class OrderRepository:
    """Repository for order CRUD operations."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def create_order(self, draft: OrderDraft) -> Order:
        """Persist a draft, assigning id and creation time.

        Args:
            draft: Order draft assembled from a cart

        Returns:
            Order: The stored order, with status pending

        Raises:
            PersistenceError: If DynamoDB rejects the write
        """
        order = Order(
            id=f"ord_{uuid.uuid4().hex[:12]}",
            created_at=datetime.now(UTC),
            restaurant_id=draft.restaurant_id,
            customer_id=draft.customer_id,
            items=list(draft.items),
            total_price=draft.total_price,
            status=OrderStatus.PENDING,
            contact_phone=draft.contact_phone,
            notes=draft.notes,
            delivery_address=draft.delivery_address,
        )

        try:
            self.table.put_item(
                Item=order.to_dynamodb_item(),
                ConditionExpression="attribute_not_exists(id)",
            )
        except ClientError as e:
            logger.error(f"Failed to create order for restaurant {draft.restaurant_id}: {e}")
            raise PersistenceError("Failed to create order") from e

        logger.info(f"Created order {order.id} for restaurant {order.restaurant_id}")
        return order

    def get_order(self, order_id: str) -> Order | None:
        """Retrieve an order by id.

        Args:
            order_id: Order identifier

        Returns:
            Order if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"id": order_id})
        except ClientError as e:
            logger.error(f"Failed to get order {order_id}: {e}")
            raise PersistenceError(f"Failed to load order {order_id}") from e

        if "Item" not in response:
            return None

        return Order.from_dynamodb_item(response["Item"])

    def list_orders_for_restaurant(self, restaurant_id: str) -> list[Order]:
        """List a restaurant's orders, newest first."""
        return self._query_index("restaurant_id-index", "restaurant_id", restaurant_id)

    def list_orders_for_customer(self, customer_id: str) -> list[Order]:
        """List a customer's orders, newest first."""
        return self._query_index("customer_id-index", "customer_id", customer_id)

    def list_all_orders(self) -> list[Order]:
        """List every order, newest first. Intended for administrators."""
        items: list[dict[str, Any]] = []
        scan_kwargs: dict[str, Any] = {}

        try:
            while True:
                response = self.table.scan(**scan_kwargs)
                items.extend(response.get("Items", []))
                if "LastEvaluatedKey" not in response:
                    break
                scan_kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]
        except ClientError as e:
            logger.error(f"Failed to scan orders: {e}")
            raise PersistenceError("Failed to list orders") from e

        orders = [Order.from_dynamodb_item(item) for item in items]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def list_orders(self, user: CurrentUser) -> list[Order]:
        """List the orders visible to a user.

        Customers see their own orders, restaurant staff see their
        restaurant's orders and administrators see all orders.
        """
        if user.role == UserRole.CUSTOMER:
            return self.list_orders_for_customer(user.id)
        if user.role == UserRole.RESTAURANT and user.restaurant_id:
            return self.list_orders_for_restaurant(user.restaurant_id)
        return self.list_all_orders()

    def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        """Set the status of an existing order.

        Args:
            order_id: Order identifier
            status: New status

        Returns:
            Order: The order as stored after the update

        Raises:
            OrderNotFoundError: If no order has this id
            PersistenceError: If DynamoDB rejects the update
        """
        try:
            response = self.table.update_item(
                Key={"id": order_id},
                UpdateExpression="SET #status = :status",
                ConditionExpression="attribute_exists(id)",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={":status": status.value},
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise OrderNotFoundError(f"Order {order_id} not found") from e
            logger.error(f"Failed to update status of order {order_id}: {e}")
            raise PersistenceError(f"Failed to update order {order_id}") from e

        return Order.from_dynamodb_item(response["Attributes"])

    def _query_index(self, index_name: str, key_name: str, key_value: str) -> list[Order]:
        items: list[dict[str, Any]] = []
        query_kwargs: dict[str, Any] = {
            "IndexName": index_name,
            "KeyConditionExpression": f"{key_name} = :key",
            "ExpressionAttributeValues": {":key": key_value},
            "ScanIndexForward": False,  # Most recent first
        }

        try:
            while True:
                response = self.table.query(**query_kwargs)
                items.extend(response.get("Items", []))
                if "LastEvaluatedKey" not in response:
                    break
                query_kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]
        except ClientError as e:
            logger.error(f"Failed to query orders by {key_name}: {e}")
            raise PersistenceError("Failed to list orders") from e

        return [Order.from_dynamodb_item(item) for item in items]
