"""Per-container dependency cache for the Lambda entry point.

Everything is built lazily on first use and kept in module globals, so warm
invocations reuse the DynamoDB resource, catalog client and FastAPI app.
Settings are the same environment variables ``main.create_application``
reads, except that carts always live in DynamoDB (``DYNAMODB_CARTS_TABLE``,
default ``restaurant-carts``): containers share no disk, and a session may
land on a different container on every request.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from restaurant_ordering.handlers.api_handler import create_app
from restaurant_ordering.observability import configure_logging
from restaurant_ordering.repositories.cart_storage import DynamoDBCartStorage
from restaurant_ordering.repositories.order_repository import OrderRepository
from restaurant_ordering.services.catalog_client import CatalogClient
from restaurant_ordering.services.catalog_service import CatalogService
from restaurant_ordering.services.checkout_service import CheckoutService
from restaurant_ordering.services.order_lifecycle import OrderLifecycleService

logger = logging.getLogger(__name__)

DEFAULT_CARTS_TABLE = "restaurant-carts"

_dynamodb_resource: Any | None = None
_order_repository: OrderRepository | None = None
_catalog_service: CatalogService | None = None
_fastapi_app: FastAPI | None = None


def get_dynamodb_resource() -> Any:
    """Return the cached DynamoDB resource, creating it on first call."""
    global _dynamodb_resource

    if _dynamodb_resource is None:
        region = os.getenv("AWS_REGION", "us-east-1")
        local_endpoint = os.getenv("DYNAMODB_ENDPOINT")
        if local_endpoint:
            _dynamodb_resource = boto3.resource(
                "dynamodb",
                endpoint_url=local_endpoint,
                region_name=region,
                aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
                aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
            )
        else:
            _dynamodb_resource = boto3.resource("dynamodb", region_name=region)
        logger.info(f"DynamoDB resource created (region {region})")

    return _dynamodb_resource


def get_order_repository() -> OrderRepository:
    """Return the cached order repository."""
    global _order_repository

    if _order_repository is None:
        _order_repository = OrderRepository(
            dynamodb_resource=get_dynamodb_resource(),
            table_name=os.getenv("DYNAMODB_ORDERS_TABLE", "restaurant-orders"),
        )

    return _order_repository


def get_catalog_service() -> CatalogService:
    """Return the cached catalog service.

    Raises:
        ValueError: If the catalog service is not configured
    """
    global _catalog_service

    if _catalog_service is None:
        base_url = os.getenv("CATALOG_SERVICE_BASE_URL")
        api_key = os.getenv("CATALOG_SERVICE_API_KEY")
        if not base_url or not api_key:
            raise ValueError(
                "CATALOG_SERVICE_BASE_URL and CATALOG_SERVICE_API_KEY must be set in environment"
            )
        _catalog_service = CatalogService(CatalogClient(base_url=base_url, api_key=api_key))

    return _catalog_service


def _api_keys() -> list[str]:
    keys = [key.strip() for key in os.getenv("ADMIN_API_KEY", "").split(",") if key.strip()]
    if not keys:
        logger.warning("ADMIN_API_KEY not set, accepting the development key only")
        keys = ["dummy-key-for-development"]
    return keys


def get_fastapi_app() -> FastAPI:
    """Return the cached FastAPI application."""
    global _fastapi_app

    if _fastapi_app is None:
        order_repository = get_order_repository()
        lock_terminal = os.getenv("ORDER_LOCK_TERMINAL_STATES", "false").lower() == "true"

        _fastapi_app = create_app(
            catalog_service=get_catalog_service(),
            checkout_service=CheckoutService(order_repository=order_repository),
            lifecycle_service=OrderLifecycleService(
                order_repository=order_repository, lock_terminal_states=lock_terminal
            ),
            cart_storage=DynamoDBCartStorage(
                dynamodb_resource=get_dynamodb_resource(),
                table_name=os.getenv("DYNAMODB_CARTS_TABLE", DEFAULT_CARTS_TABLE),
            ),
            api_keys=_api_keys(),
        )
        logger.info("FastAPI application built for Lambda")

    return _fastapi_app


def initialize_lambda_environment() -> None:
    """Configure logging once during Lambda cold start."""
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
