"""User domain exceptions."""

from app.core.exceptions import ConflictError


class UserExistsError(ConflictError):
    """Raised when a local user already exists for an email."""

    error_type = "user_exists"

    def __init__(self, message: str = "User already exists. Please login instead."):
        super().__init__(message)
