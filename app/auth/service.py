"""Passwordless authentication flows.

OTP lifecycle per email:
    NO_OTP -> OTP_PENDING (send) -> CONSUMED (verify/register, row deleted)
    OTP_PENDING -> EXPIRED (checked at verify time, row deleted)

Session lifecycle per token:
    ISSUED -> VALID (not revoked, now < expires_at) -> EXPIRED | REVOKED

Both are terminal in the last state; an expired session is revoked when it
is presented and is never reactivated.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime

from app.auth.exceptions import (
    InvalidOtpError,
    InvalidSessionError,
    OtpExpiredError,
    OtpNotFoundError,
    SessionExpiredError,
)
from app.auth.models import Otp
from app.auth.stores import (
    OtpStore,
    SessionStore,
    generate_otp_code,
    generate_session_token,
    is_expired,
)
from app.core.clock import utc_now
from app.core.email import send_otp_email
from app.core.settings import Settings
from app.identity.service import IdentityService, merge_user_profile
from app.shopify.exceptions import CustomerNotFoundError
from app.user.schemas import UserProfile
from app.user.store import UserStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedOtp:
    email: str
    expires_at: datetime


@dataclass(frozen=True)
class AuthResult:
    """A freshly minted session and the profile it belongs to."""

    token: str
    expires_at: datetime
    user: UserProfile


class AuthService:
    """Orchestrates OTP issue/verify and session issue/validate/revoke."""

    def __init__(
        self,
        otp_store: OtpStore,
        session_store: SessionStore,
        user_store: UserStore,
        identity: IdentityService,
        settings: Settings,
    ):
        self._otps = otp_store
        self._sessions = session_store
        self._users = user_store
        self._identity = identity
        self._settings = settings

    async def send_login_otp(self, email: str) -> IssuedOtp:
        """Issue a login code to an existing Shopify customer.

        Raises:
            CustomerNotFoundError: If Shopify has no customer for the email
            UpstreamUnavailableError: If Shopify cannot answer
            EmailDeliveryError: If the code could not be emailed
        """
        if not await self._identity.customer_exists(email):
            logger.info(
                "Login OTP refused: not a Shopify customer",
                extra={"flow": "send_otp", "email": email},
            )
            raise CustomerNotFoundError()
        return self._issue_otp(email, flow="send_otp")

    async def send_register_otp(self, email: str) -> IssuedOtp:
        """Issue a registration code without the customer gate.

        Raises:
            EmailDeliveryError: If the code could not be emailed
        """
        return self._issue_otp(email, flow="send_otp_register")

    async def verify_otp(self, email: str, code: str) -> AuthResult:
        """Exchange a valid code for a session.

        Raises:
            OtpNotFoundError: If no code was issued for the email
            OtpExpiredError: If the newest code has expired (it is deleted)
            InvalidOtpError: If the code does not match (it is kept)
        """
        otp = self._check_otp(email, code, flow="verify_otp")
        self._claim_otp(otp.id, email, flow="verify_otp")

        profile = await self._identity.get_or_create_user(email, force_refresh=True)
        result = self._mint_session(profile)

        logger.info(
            "OTP verified, session issued",
            extra={"flow": "verify_otp", "email": email, "user_id": profile.id},
        )
        return result

    async def register(
        self,
        email: str,
        first_name: str,
        last_name: str,
        phone: str | None,
        code: str,
    ) -> AuthResult:
        """Verify a registration code, create the customer and the user.

        The code survives a failed registration so it can be retried; it is
        claimed before the session is minted.

        Raises:
            OtpNotFoundError, OtpExpiredError, InvalidOtpError: As verify_otp
            UserExistsError: If a local user already exists for the email
            UpstreamCustomerExistsError: If Shopify already has the email
            UpstreamUnavailableError: If Shopify cannot answer
        """
        otp_id = self._check_otp(email, code, flow="register").id

        profile = await self._identity.register_user(
            email, first_name, last_name, phone
        )
        self._claim_otp(otp_id, email, flow="register")
        result = self._mint_session(profile)

        logger.info(
            "Registration complete, session issued",
            extra={"flow": "register", "email": email, "user_id": profile.id},
        )
        return result

    async def validate(self, token: str) -> UserProfile:
        """Return the profile for a live session.

        Upstream problems never fail validation; the cached local user is
        returned instead.

        Raises:
            InvalidSessionError: If the token is unknown, revoked or orphaned
            SessionExpiredError: If the session has expired (it is revoked)
        """
        auth_session = self._sessions.get(token)
        if auth_session is None:
            raise InvalidSessionError()

        if auth_session.revoked or is_expired(auth_session.expires_at):
            self._sessions.revoke(token)
            logger.info(
                "Expired session presented",
                extra={"flow": "validate", "user_id": auth_session.user_id},
            )
            raise SessionExpiredError()

        user = self._users.get_by_id(auth_session.user_id)
        if user is None:
            raise InvalidSessionError("User not found")

        try:
            return await self._identity.get_or_create_user(
                user.email, force_refresh=False
            )
        except Exception as e:
            logger.warning(
                "Profile refresh failed, serving cached user: %s",
                e,
                extra={"flow": "validate", "email": user.email, "user_id": user.id},
            )
            self._users.rollback()
            return merge_user_profile(user, None)

    def logout(self, token: str) -> None:
        self._sessions.revoke(token)
        logger.info("Session revoked", extra={"flow": "logout"})

    def _issue_otp(self, email: str, *, flow: str) -> IssuedOtp:
        code = generate_otp_code()
        expires_at = utc_now() + self._settings.otp_expires_in
        self._otps.store(email, code, expires_at)

        # The row stays behind if dispatch fails; the next send supersedes it.
        send_otp_email(email, code, self._settings.otp_expires_minutes)

        logger.info("OTP issued", extra={"flow": flow, "email": email})
        return IssuedOtp(email=email, expires_at=expires_at)

    def _check_otp(self, email: str, code: str, *, flow: str) -> Otp:
        otp = self._otps.get(email, include_expired=True)
        if otp is None:
            logger.info("OTP not found", extra={"flow": flow, "email": email})
            raise OtpNotFoundError()

        if is_expired(otp.expires_at):
            self._otps.delete(email)
            logger.info("OTP expired", extra={"flow": flow, "email": email})
            raise OtpExpiredError()

        if not secrets.compare_digest(otp.code.encode(), code.encode()):
            logger.info("OTP mismatch", extra={"flow": flow, "email": email})
            raise InvalidOtpError()

        return otp

    def _claim_otp(self, otp_id: int, email: str, *, flow: str) -> None:
        if not self._otps.consume(otp_id, email):
            logger.info(
                "OTP already consumed by a concurrent request",
                extra={"flow": flow, "email": email},
            )
            raise OtpNotFoundError()

    def _mint_session(self, profile: UserProfile) -> AuthResult:
        token = generate_session_token()
        expires_at = utc_now() + self._settings.session_expires_in
        self._sessions.create(profile.id, token, expires_at)
        return AuthResult(token=token, expires_at=expires_at, user=profile)
