"""API key validation for requests forwarded by the auth gateway.

The hosted auth service authenticates end users and forwards their identity
to this service. The gateway itself proves who it is with an API key that is
matched against a configured set of valid keys.
"""


class APIKeyValidator:
    """Validates gateway API keys.

    Uses dependency injection for configuration and simple return values for
    validation results.
    """

    def __init__(self, api_keys: list[str]) -> None:
        """Initialize validator with list of valid API keys.

        Args:
            api_keys: List of valid API key strings

        Raises:
            ValueError: If api_keys list is empty
        """
        if not api_keys:
            raise ValueError("At least one API key must be provided")

        self.api_keys = frozenset(api_keys)

    def validate(self, api_key: str) -> bool:
        """Return True if the API key is one of the configured keys."""
        return api_key in self.api_keys
