"""User descriptors provided by the hosted auth collaborator."""

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class UserRole(str, Enum):
    """Enumeration of user roles."""

    ADMIN = "admin"
    RESTAURANT = "restaurant"
    CUSTOMER = "customer"


class CurrentUser(BaseModel):
    """The authenticated actor performing an operation.

    Restaurant-role users are always scoped to exactly one restaurant.
    """

    id: str = Field(..., description="User identifier")
    role: UserRole = Field(..., description="User role")
    name: str | None = Field(None, description="Display name")
    restaurant_id: str | None = Field(
        None, description="Restaurant the user manages (restaurant role only)"
    )

    @model_validator(mode="after")
    def validate_restaurant_scope(self) -> "CurrentUser":
        """Validate that restaurant users carry a restaurant id."""
        if self.role == UserRole.RESTAURANT and not self.restaurant_id:
            raise ValueError("restaurant_id is required for restaurant users")
        return self

    def manages_restaurant(self, restaurant_id: str) -> bool:
        """Return True if this user is restaurant staff for the given restaurant."""
        return self.role == UserRole.RESTAURANT and self.restaurant_id == restaurant_id
