"""FastAPI dependencies for gateway authentication and user identity.

The auth collaborator is consumed only as "who is the current user": the
gateway forwards X-User-Id, X-User-Role and X-Restaurant-Id headers alongside
its X-API-Key. Requests without X-User-Id are anonymous (guest) requests.
"""

from typing import Annotated

from fastapi import Header, HTTPException
from pydantic import ValidationError

from restaurant_ordering.auth.api_key_validator import APIKeyValidator
from restaurant_ordering.models.user_models import CurrentUser, UserRole


def get_api_key_from_header(
    x_api_key: Annotated[str | None, Header()] = None,
    validator: APIKeyValidator | None = None,
) -> str:
    """Extract and validate the API key from the X-API-Key header.

    Args:
        x_api_key: API key from X-API-Key header (injected by FastAPI)
        validator: APIKeyValidator instance

    Returns:
        str: The validated API key

    Raises:
        HTTPException: 401 if API key is missing or invalid
    """
    if not x_api_key:
        raise HTTPException(status_code=401, detail="Missing API key")

    if validator and not validator.validate(x_api_key):
        raise HTTPException(status_code=401, detail="Invalid API key")

    return x_api_key


def get_current_user_from_headers(
    x_user_id: str | None = None,
    x_user_role: str | None = None,
    x_restaurant_id: str | None = None,
) -> CurrentUser | None:
    """Build the current user from forwarded identity headers.

    Returns:
        CurrentUser, or None when the request is anonymous

    Raises:
        HTTPException: 401 if the identity headers are inconsistent
    """
    if not x_user_id:
        return None

    try:
        return CurrentUser(
            id=x_user_id,
            role=UserRole(x_user_role or UserRole.CUSTOMER.value),
            restaurant_id=x_restaurant_id or None,
        )
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=401, detail=f"Invalid user identity: {e}") from e


def require_user(user: CurrentUser | None) -> CurrentUser:
    """Return the user, or raise 401 when the request is anonymous."""
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user
