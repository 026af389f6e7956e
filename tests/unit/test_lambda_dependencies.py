"""Unit tests for Lambda dependency factory."""

import os
from unittest.mock import MagicMock, Mock, patch

import pytest

import src.lambda_dependencies as deps
from restaurant_ordering.repositories.cart_storage import DynamoDBCartStorage
from src.lambda_dependencies import (
    get_catalog_service,
    get_dynamodb_resource,
    get_fastapi_app,
    get_order_repository,
    initialize_lambda_environment,
)


def _reset_caches() -> None:
    deps._dynamodb_resource = None
    deps._order_repository = None
    deps._catalog_service = None
    deps._fastapi_app = None


@pytest.mark.unit
class TestGetDynamoDBResource:
    """Tests for get_dynamodb_resource function."""

    def teardown_method(self) -> None:
        """Clear cached resources after each test."""
        _reset_caches()

    @patch.dict(os.environ, {"AWS_REGION": "us-west-2"}, clear=True)
    @patch("src.lambda_dependencies.boto3.resource")
    def test_creates_and_caches_resource(self, mock_boto3_resource: Mock) -> None:
        """Test that the resource is created once per container."""
        first = get_dynamodb_resource()
        second = get_dynamodb_resource()

        mock_boto3_resource.assert_called_once_with("dynamodb", region_name="us-west-2")
        assert first is second

    @patch.dict(os.environ, {"DYNAMODB_ENDPOINT": "http://localhost:8000"}, clear=True)
    @patch("src.lambda_dependencies.boto3.resource")
    def test_uses_local_endpoint(self, mock_boto3_resource: Mock) -> None:
        get_dynamodb_resource()

        assert mock_boto3_resource.call_args.kwargs["endpoint_url"] == "http://localhost:8000"


@pytest.mark.unit
class TestServiceFactories:
    """Tests for repository, catalog and app factories."""

    def teardown_method(self) -> None:
        _reset_caches()

    @patch.dict(os.environ, {"DYNAMODB_ORDERS_TABLE": "orders-test"}, clear=True)
    @patch("src.lambda_dependencies.get_dynamodb_resource")
    def test_order_repository_uses_table_name(self, mock_resource: Mock) -> None:
        mock_resource.return_value = MagicMock()

        repository = get_order_repository()

        assert repository.table_name == "orders-test"
        assert get_order_repository() is repository

    @patch.dict(os.environ, {}, clear=True)
    def test_catalog_service_requires_configuration(self) -> None:
        with pytest.raises(ValueError):
            get_catalog_service()

    @patch.dict(
        os.environ,
        {"CATALOG_SERVICE_BASE_URL": "https://catalog.test", "CATALOG_SERVICE_API_KEY": "k"},
        clear=True,
    )
    def test_catalog_service_is_cached(self) -> None:
        service = get_catalog_service()

        assert service.catalog_client.base_url == "https://catalog.test"
        assert get_catalog_service() is service

    @patch.dict(
        os.environ,
        {"CATALOG_SERVICE_BASE_URL": "https://catalog.test", "CATALOG_SERVICE_API_KEY": "k"},
        clear=True,
    )
    @patch("src.lambda_dependencies.get_dynamodb_resource")
    def test_fastapi_app_defaults(self, mock_resource: Mock) -> None:
        """Test Lambda defaults: carts in DynamoDB, development API key."""
        mock_resource.return_value = MagicMock()

        app = get_fastapi_app()

        assert isinstance(app.state.cart_storage, DynamoDBCartStorage)
        assert app.state.cart_storage.table_name == "restaurant-carts"
        mock_resource.return_value.Table.assert_any_call("restaurant-carts")
        assert app.state.api_key_validator.validate("dummy-key-for-development")
        assert app.state.lifecycle_service.lock_terminal_states is False
        assert get_fastapi_app() is app


@pytest.mark.unit
class TestInitializeLambdaEnvironment:
    """Tests for initialize_lambda_environment."""

    @patch.dict(os.environ, {"LOG_LEVEL": "DEBUG"}, clear=True)
    @patch("src.lambda_dependencies.configure_logging")
    def test_configures_logging(self, mock_configure: Mock) -> None:
        initialize_lambda_environment()

        mock_configure.assert_called_once_with("DEBUG")
