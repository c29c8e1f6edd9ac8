"""Auth domain exceptions.

OTP and session related exceptions.
"""

from app.core.exceptions import AuthenticationError, ValidationError


# OTP errors (400)
class OtpError(ValidationError):
    """Base class for OTP verification failures."""

    error_type = "otp_error"

    def __init__(self, message: str = "OTP verification failed"):
        super().__init__(message)


class OtpNotFoundError(OtpError):
    """Raised when no OTP has been issued for an email."""

    error_type = "otp_not_found"

    def __init__(self, message: str = "OTP not found"):
        super().__init__(message)


class OtpExpiredError(OtpError):
    """Raised when the newest OTP for an email has expired."""

    error_type = "otp_expired"

    def __init__(self, message: str = "OTP expired"):
        super().__init__(message)


class InvalidOtpError(OtpError):
    """Raised when the submitted code does not match."""

    error_type = "invalid_otp"

    def __init__(self, message: str = "Invalid OTP"):
        super().__init__(message)


# Session errors (401)
class InvalidSessionError(AuthenticationError):
    """Raised when a session token is unknown or revoked."""

    error_type = "invalid_session"

    def __init__(self, message: str = "Invalid session"):
        super().__init__(message)


class SessionExpiredError(AuthenticationError):
    """Raised when a session token has expired."""

    error_type = "session_expired"

    def __init__(self, message: str = "Session expired"):
        super().__init__(message)
