"""Shopify integration exceptions.

UpstreamUnavailableError covers everything that means "Shopify could not
answer" (network, timeout, auth, throttling, GraphQL errors, missing
configuration). Callers decide whether that is fatal for their flow.
"""

from app.core.exceptions import ExternalServiceError, NotFoundError, ValidationError


class UpstreamUnavailableError(ExternalServiceError):
    """Raised when a Shopify API call fails for any non-validation reason."""

    error_type = "upstream_unavailable"

    def __init__(self, message: str = "Store service is temporarily unavailable"):
        super().__init__(message)


class UpstreamNotConfiguredError(UpstreamUnavailableError):
    """Raised when the store domain or the needed access token is not set."""

    error_type = "upstream_not_configured"

    def __init__(self, message: str = "Store integration is not configured"):
        super().__init__(message)


class UpstreamValidationError(ValidationError):
    """Raised when a Shopify mutation returns userErrors."""

    error_type = "upstream_validation_error"

    def __init__(
        self,
        message: str = "Store rejected the request",
        user_errors: list[dict] | None = None,
    ):
        self.user_errors = user_errors or []
        super().__init__(message)


class UpstreamCustomerExistsError(UpstreamValidationError):
    """Raised when Shopify already has a customer with the given email."""

    error_type = "customer_exists"

    def __init__(
        self,
        message: str = "Customer already exists in our store. Please login instead.",
        user_errors: list[dict] | None = None,
    ):
        super().__init__(message, user_errors=user_errors)


class CustomerNotFoundError(NotFoundError):
    """Raised when no Shopify customer matches an email."""

    error_type = "customer_not_found"

    def __init__(
        self,
        message: str = (
            "Email not found in our store. Please use the email associated "
            "with your Shopify account."
        ),
    ):
        super().__init__(message)
