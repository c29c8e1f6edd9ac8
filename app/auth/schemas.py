"""Auth domain schemas.

Request and response schemas for the OTP and session endpoints. Field names
on the wire are camelCase where the app expects them.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.user.schemas import UserProfile

OTP_PATTERN = r"^\d{6}$"


class SendOtpRequest(BaseModel):
    """Request schema for issuing a login or registration code."""

    email: EmailStr


class VerifyOtpRequest(BaseModel):
    """Request schema for exchanging a code for a session."""

    email: EmailStr
    otp: str = Field(pattern=OTP_PATTERN)


class RegisterRequest(BaseModel):
    """Request schema for registration with a code."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    first_name: str = Field(min_length=1, max_length=255, alias="firstName")
    last_name: str = Field(min_length=1, max_length=255, alias="lastName")
    phone: str | None = Field(default=None, max_length=32)
    otp: str = Field(pattern=OTP_PATTERN)


class TokenRequest(BaseModel):
    """Request schema for validate and logout."""

    token: str = Field(min_length=1)


class SendOtpResponse(BaseModel):
    success: bool = True
    message: str
    email: str


class SendRegisterOtpResponse(BaseModel):
    success: bool = True
    message: str
    expires_in: str = Field(serialization_alias="expiresIn")


class AuthSessionResponse(BaseModel):
    """Response schema for a newly issued session."""

    success: bool = True
    message: str
    token: str
    user: UserProfile
    expires_in: str = Field(serialization_alias="expiresIn")


class ValidateResponse(BaseModel):
    success: bool = True
    user: UserProfile


class MessageResponse(BaseModel):
    success: bool = True
    message: str
