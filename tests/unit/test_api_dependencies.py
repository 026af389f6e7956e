"""Unit tests for FastAPI authentication dependencies."""

import pytest
from fastapi import HTTPException

from restaurant_ordering.auth.api_dependencies import (
    get_api_key_from_header,
    get_current_user_from_headers,
    require_user,
)
from restaurant_ordering.auth.api_key_validator import APIKeyValidator
from restaurant_ordering.models.user_models import CurrentUser, UserRole


@pytest.mark.unit
class TestGetAPIKeyFromHeader:
    """Test suite for get_api_key_from_header dependency."""

    def test_returns_api_key_when_valid(self) -> None:
        validator = APIKeyValidator(api_keys=["valid-key"])

        assert get_api_key_from_header(x_api_key="valid-key", validator=validator) == "valid-key"

    @pytest.mark.parametrize(
        ("header", "detail"),
        [(None, "Missing API key"), ("", "Missing API key"), ("wrong", "Invalid API key")],
    )
    def test_raises_401(self, header: str | None, detail: str) -> None:
        """Test that missing or wrong keys are rejected."""
        validator = APIKeyValidator(api_keys=["valid-key"])

        with pytest.raises(HTTPException) as exc_info:
            get_api_key_from_header(x_api_key=header, validator=validator)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == detail


@pytest.mark.unit
class TestGetCurrentUserFromHeaders:
    """Test suite for identity header parsing."""

    def test_anonymous_request(self) -> None:
        """Test that no user id means a guest."""
        assert get_current_user_from_headers(None, "customer", None) is None

    def test_role_defaults_to_customer(self) -> None:
        user = get_current_user_from_headers("user_1")

        assert user is not None
        assert user.role == UserRole.CUSTOMER
        assert user.restaurant_id is None

    def test_restaurant_staff(self) -> None:
        user = get_current_user_from_headers("user_2", "restaurant", "rest_123")

        assert user is not None
        assert user.manages_restaurant("rest_123")
        assert not user.manages_restaurant("rest_999")

    @pytest.mark.parametrize(
        ("role", "restaurant_id"),
        [("superuser", None), ("restaurant", None), ("restaurant", "")],
    )
    def test_inconsistent_identity_raises_401(self, role: str, restaurant_id: str | None) -> None:
        """Test that unknown roles and unscoped staff are rejected."""
        with pytest.raises(HTTPException) as exc_info:
            get_current_user_from_headers("user_3", role, restaurant_id)

        assert exc_info.value.status_code == 401


@pytest.mark.unit
class TestRequireUser:
    """Test suite for require_user."""

    def test_returns_user(self, customer: CurrentUser) -> None:
        assert require_user(customer) is customer

    def test_anonymous_raises_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            require_user(None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Authentication required"
