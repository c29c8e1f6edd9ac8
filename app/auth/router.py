"""Auth domain router.

Thin HTTP handlers for the OTP login, registration and session endpoints.
All flow logic lives in AuthService.
"""

from fastapi import APIRouter

from app.auth.dependencies import AuthServiceDep
from app.auth.schemas import (
    AuthSessionResponse,
    MessageResponse,
    RegisterRequest,
    SendOtpRequest,
    SendOtpResponse,
    SendRegisterOtpResponse,
    TokenRequest,
    ValidateResponse,
    VerifyOtpRequest,
)
from app.core.constants import CommonResponses, Routes
from app.core.deps import SettingsDep

router = APIRouter(
    prefix=Routes.AUTH.prefix,
    tags=[Routes.AUTH.tag],
    responses={**CommonResponses.BAD_REQUEST},
)


def _session_lifetime(days: int) -> str:
    return f"{days} day" if days == 1 else f"{days} days"


@router.post(
    "/send-otp",
    response_model=SendOtpResponse,
    responses={
        **CommonResponses.NOT_FOUND,
        **CommonResponses.EMAIL_FAILED,
        **CommonResponses.UPSTREAM_UNAVAILABLE,
    },
)
async def send_otp(body: SendOtpRequest, auth: AuthServiceDep):
    """Email a login code to an existing Shopify customer."""
    issued = await auth.send_login_otp(body.email)
    return SendOtpResponse(message="OTP sent to your email", email=issued.email)


@router.post(
    "/send-otp-register",
    response_model=SendRegisterOtpResponse,
    responses={**CommonResponses.EMAIL_FAILED},
)
async def send_otp_register(
    body: SendOtpRequest, auth: AuthServiceDep, settings: SettingsDep
):
    """Email a registration code. No Shopify customer is required."""
    await auth.send_register_otp(body.email)
    return SendRegisterOtpResponse(
        message="OTP sent to your email",
        expires_in=f"{settings.otp_expires_minutes} minutes",
    )


@router.post("/verify-otp", response_model=AuthSessionResponse)
async def verify_otp(
    body: VerifyOtpRequest, auth: AuthServiceDep, settings: SettingsDep
):
    """Exchange a login code for a session token."""
    result = await auth.verify_otp(body.email, body.otp)
    return AuthSessionResponse(
        message="Login successful",
        token=result.token,
        user=result.user,
        expires_in=_session_lifetime(settings.session_expires_days),
    )


@router.post(
    "/register",
    response_model=AuthSessionResponse,
    responses={**CommonResponses.UPSTREAM_UNAVAILABLE},
)
async def register(
    body: RegisterRequest, auth: AuthServiceDep, settings: SettingsDep
):
    """Verify a registration code and create the customer and the user."""
    result = await auth.register(
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        code=body.otp,
    )
    return AuthSessionResponse(
        message="Registration successful",
        token=result.token,
        user=result.user,
        expires_in=_session_lifetime(settings.session_expires_days),
    )


@router.post(
    "/validate",
    response_model=ValidateResponse,
    responses={**CommonResponses.UNAUTHORIZED},
)
async def validate(body: TokenRequest, auth: AuthServiceDep):
    """Return the user for a live session token."""
    user = await auth.validate(body.token)
    return ValidateResponse(user=user)


@router.post("/logout", response_model=MessageResponse)
async def logout(body: TokenRequest, auth: AuthServiceDep):
    """Revoke a session token. Unknown tokens are accepted."""
    auth.logout(body.token)
    return MessageResponse(message="Logged out successfully")
