"""Local and container entry point for the ordering API.

Run with ``python src/main.py`` (uvicorn with reload) or point any ASGI
server at ``main:app``. Settings come from environment variables; see
``create_application`` for the full list.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from restaurant_ordering.handlers.api_handler import create_app
from restaurant_ordering.observability import configure_logging, setup_observability
from restaurant_ordering.repositories.cart_storage import (
    CartStorage,
    DynamoDBCartStorage,
    FileCartStorage,
)
from restaurant_ordering.repositories.order_repository import OrderRepository
from restaurant_ordering.services.catalog_client import CatalogClient
from restaurant_ordering.services.catalog_service import CatalogService
from restaurant_ordering.services.checkout_service import CheckoutService
from restaurant_ordering.services.order_lifecycle import OrderLifecycleService

logger = logging.getLogger(__name__)

DEVELOPMENT_API_KEY = "dummy-key-for-development"


def get_dynamodb_resource() -> Any:
    """Return a DynamoDB resource, local when DYNAMODB_ENDPOINT is set."""
    region = os.getenv("AWS_REGION", "us-east-1")
    local_endpoint = os.getenv("DYNAMODB_ENDPOINT")

    if not local_endpoint:
        logger.info(f"Using AWS DynamoDB ({region})")
        return boto3.resource("dynamodb", region_name=region)

    logger.info(f"Using local DynamoDB at {local_endpoint}")
    return boto3.resource(
        "dynamodb",
        endpoint_url=local_endpoint,
        region_name=region,
        aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
        aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
    )


def get_api_keys() -> list[str]:
    """Read the gateway API keys from ADMIN_API_KEY (comma separated)."""
    keys = [key.strip() for key in os.getenv("ADMIN_API_KEY", "").split(",")]
    keys = [key for key in keys if key]

    if keys:
        return keys

    logger.warning("ADMIN_API_KEY not set, accepting the development key only")
    return [DEVELOPMENT_API_KEY]


def lock_terminal_states_enabled() -> bool:
    """Whether delivered/cancelled orders are locked against status changes."""
    return os.getenv("ORDER_LOCK_TERMINAL_STATES", "false").lower() == "true"


def get_cart_storage(dynamodb_resource: Any) -> CartStorage:
    """Store carts in DynamoDB when DYNAMODB_CARTS_TABLE is set, else in local files.

    File storage is only safe while every worker runs on one host.
    """
    carts_table = os.getenv("DYNAMODB_CARTS_TABLE")
    if carts_table:
        logger.info(f"Carts stored in DynamoDB table {carts_table}")
        return DynamoDBCartStorage(dynamodb_resource=dynamodb_resource, table_name=carts_table)

    cart_dir = os.getenv("CART_STORAGE_DIR", ".carts")
    logger.info(f"Carts stored as files in {cart_dir}")
    return FileCartStorage(cart_dir)


def get_catalog_service() -> CatalogService:
    """Build the catalog service from CATALOG_SERVICE_* settings.

    Raises:
        ValueError: If the catalog URL or API key is missing
    """
    base_url = os.getenv("CATALOG_SERVICE_BASE_URL")
    api_key = os.getenv("CATALOG_SERVICE_API_KEY")

    if not base_url or not api_key:
        raise ValueError(
            "CATALOG_SERVICE_BASE_URL and CATALOG_SERVICE_API_KEY must be set in environment"
        )

    logger.info(f"Catalog API at {base_url}")
    return CatalogService(CatalogClient(base_url=base_url, api_key=api_key))


def create_application() -> FastAPI:
    """Wire the ordering services into a FastAPI application.

    Environment:
        LOG_LEVEL: Root log level (default INFO)
        DYNAMODB_ORDERS_TABLE: Orders table (default "restaurant-orders")
        DYNAMODB_CARTS_TABLE: Carts table; when unset carts are files
        CART_STORAGE_DIR: Directory for cart snapshot files (default ".carts")
        CATALOG_SERVICE_BASE_URL, CATALOG_SERVICE_API_KEY: Catalog API access
        ORDER_LOCK_TERMINAL_STATES: "true" freezes delivered/cancelled orders
        ADMIN_API_KEY: Comma-separated gateway API keys

    Returns:
        The instrumented FastAPI application
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    orders_table = os.getenv("DYNAMODB_ORDERS_TABLE", "restaurant-orders")
    dynamodb = get_dynamodb_resource()
    order_repository = OrderRepository(dynamodb_resource=dynamodb, table_name=orders_table)

    app = create_app(
        catalog_service=get_catalog_service(),
        checkout_service=CheckoutService(order_repository=order_repository),
        lifecycle_service=OrderLifecycleService(
            order_repository=order_repository,
            lock_terminal_states=lock_terminal_states_enabled(),
        ),
        cart_storage=get_cart_storage(dynamodb),
        api_keys=get_api_keys(),
    )
    setup_observability(app)

    logger.info(f"Ordering service ready (orders table {orders_table})")
    return app


# Importing under pytest must not touch AWS or the catalog
app = create_application() if os.getenv("ENVIRONMENT") != "test" else FastAPI()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8001")),
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
