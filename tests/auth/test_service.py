"""Tests for app/auth/service.py - OTP and session flows."""

from datetime import timedelta
from unittest.mock import MagicMock

import anyio
import pytest
from sqlmodel import Session, SQLModel, create_engine, select

from app.auth.exceptions import (
    InvalidOtpError,
    InvalidSessionError,
    OtpExpiredError,
    OtpNotFoundError,
    SessionExpiredError,
)
from app.auth.models import AuthSession
from app.auth.service import AuthService
from app.auth.stores import OtpStore, SessionStore
from app.core.clock import utc_now
from app.core.exceptions import EmailDeliveryError
from app.identity.service import IdentityService
from app.shopify.exceptions import (
    CustomerNotFoundError,
    UpstreamCustomerExistsError,
    UpstreamUnavailableError,
)
from app.user.exceptions import UserExistsError
from app.user.models import User
from app.user.store import UserStore
from tests.helpers import last_sent_code, make_settings, make_upstream


def _auth_service(session: Session, gateway: MagicMock) -> AuthService:
    users = UserStore(session)
    return AuthService(
        otp_store=OtpStore(session),
        session_store=SessionStore(session),
        user_store=users,
        identity=IdentityService(users, gateway),
        settings=make_settings(),
    )


@pytest.fixture(name="auth")
def auth_fixture(session: Session, mock_gateway: MagicMock) -> AuthService:
    return _auth_service(session, mock_gateway)


class TestSendOtp:
    @pytest.mark.asyncio
    async def test_login_otp_requires_shopify_customer(
        self, auth: AuthService, mock_gateway: MagicMock, mock_send_email: MagicMock
    ):
        mock_gateway.exists_by_email.return_value = False

        with pytest.raises(CustomerNotFoundError):
            await auth.send_login_otp("nobody@example.com")

        mock_send_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_login_otp_propagates_unavailability(
        self, auth: AuthService, mock_gateway: MagicMock, mock_send_email: MagicMock
    ):
        mock_gateway.exists_by_email.side_effect = UpstreamUnavailableError()

        with pytest.raises(UpstreamUnavailableError):
            await auth.send_login_otp("a@example.com")

        mock_send_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_login_otp_is_stored_and_emailed(
        self, auth: AuthService, session: Session, mock_send_email: MagicMock
    ):
        before = utc_now()
        issued = await auth.send_login_otp("a@example.com")

        otp = OtpStore(session).get("a@example.com")
        assert otp is not None
        assert otp.code == last_sent_code(mock_send_email)
        mock_send_email.assert_called_once_with("a@example.com", otp.code, 10)
        assert timedelta(minutes=9) < issued.expires_at - before <= timedelta(
            minutes=10, seconds=5
        )

    @pytest.mark.asyncio
    async def test_register_otp_skips_customer_gate(
        self, auth: AuthService, mock_gateway: MagicMock, mock_send_email: MagicMock
    ):
        mock_gateway.exists_by_email.return_value = False

        await auth.send_register_otp("new@example.com")

        mock_gateway.exists_by_email.assert_not_called()
        mock_send_email.assert_called_once()

    @pytest.mark.asyncio
    async def test_dispatch_failure_raises_and_leaves_row(
        self, auth: AuthService, session: Session, mock_send_email: MagicMock
    ):
        mock_send_email.side_effect = EmailDeliveryError()

        with pytest.raises(EmailDeliveryError):
            await auth.send_register_otp("a@example.com")

        assert OtpStore(session).get("a@example.com") is not None


class TestVerifyOtp:
    @pytest.mark.asyncio
    async def test_missing_otp(self, auth: AuthService):
        with pytest.raises(OtpNotFoundError):
            await auth.verify_otp("a@example.com", "123456")

    @pytest.mark.asyncio
    async def test_expired_otp_is_deleted(self, auth: AuthService, session: Session):
        OtpStore(session).store(
            "a@example.com", "123456", utc_now() - timedelta(seconds=1)
        )

        with pytest.raises(OtpExpiredError):
            await auth.verify_otp("a@example.com", "123456")

        assert OtpStore(session).get("a@example.com", include_expired=True) is None
        with pytest.raises(OtpNotFoundError):
            await auth.verify_otp("a@example.com", "123456")

    @pytest.mark.asyncio
    async def test_mismatch_keeps_otp_for_retry(
        self, auth: AuthService, session: Session
    ):
        OtpStore(session).store(
            "a@example.com", "123456", utc_now() + timedelta(minutes=10)
        )

        with pytest.raises(InvalidOtpError):
            await auth.verify_otp("a@example.com", "654321")

        result = await auth.verify_otp("a@example.com", "123456")
        assert result.token

    @pytest.mark.asyncio
    async def test_latest_code_wins(
        self, auth: AuthService, mock_send_email: MagicMock
    ):
        await auth.send_login_otp("a@example.com")
        first = last_sent_code(mock_send_email)
        await auth.send_login_otp("a@example.com")
        second = last_sent_code(mock_send_email)

        if first != second:
            with pytest.raises(InvalidOtpError):
                await auth.verify_otp("a@example.com", first)
        result = await auth.verify_otp("a@example.com", second)
        assert result.user.email == "a@example.com"

    @pytest.mark.asyncio
    async def test_success_issues_session_and_consumes_otp(
        self, auth: AuthService, session: Session, mock_gateway: MagicMock
    ):
        OtpStore(session).store(
            "a@example.com", "123456", utc_now() + timedelta(minutes=10)
        )

        result = await auth.verify_otp("a@example.com", "123456")

        stored = SessionStore(session).get(result.token)
        assert stored is not None
        assert stored.user_id == result.user.id
        lifetime = result.expires_at - utc_now()
        assert timedelta(days=29) < lifetime <= timedelta(days=30)
        mock_gateway.find_by_email.assert_awaited_with("a@example.com", api="admin")
        assert OtpStore(session).get("a@example.com", include_expired=True) is None

        with pytest.raises(OtpNotFoundError):
            await auth.verify_otp("a@example.com", "123456")

    @pytest.mark.asyncio
    async def test_concurrent_verifications_issue_one_session(
        self, tmp_path, mock_gateway: MagicMock
    ):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'auth.db'}",
            connect_args={"check_same_thread": False},
        )
        SQLModel.metadata.create_all(engine)

        async def slow_lookup(email, *, api="admin"):
            await anyio.sleep(0.05)
            return None

        mock_gateway.find_by_email.side_effect = slow_lookup
        with Session(engine) as seed:
            OtpStore(seed).store(
                "a@example.com", "123456", utc_now() + timedelta(minutes=10)
            )

        outcomes: list[str] = []

        async def attempt(db: Session) -> None:
            try:
                await _auth_service(db, mock_gateway).verify_otp(
                    "a@example.com", "123456"
                )
                outcomes.append("session")
            except OtpNotFoundError:
                outcomes.append("rejected")

        with Session(engine) as first, Session(engine) as second:
            async with anyio.create_task_group() as tg:
                tg.start_soon(attempt, first)
                tg.start_soon(attempt, second)

        with Session(engine) as check:
            issued = check.exec(select(AuthSession)).all()
        engine.dispose()

        assert sorted(outcomes) == ["rejected", "session"]
        assert len(issued) == 1


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_creates_local_user_with_local_id(
        self, auth: AuthService, session: Session, mock_gateway: MagicMock
    ):
        OtpStore(session).store(
            "new@example.com", "123456", utc_now() + timedelta(minutes=10)
        )

        result = await auth.register(
            "new@example.com", "Ada", "Lovelace", "+15550002222", "123456"
        )

        user = UserStore(session).get_by_email("new@example.com")
        assert user is not None
        assert result.user.id == user.id
        assert result.user.shopify_id == "gid://shopify/Customer/1001"
        assert result.user.is_new_customer is True
        assert user.name == "Ada Lovelace"
        mock_gateway.create_customer.assert_awaited_once_with(
            "new@example.com", "Ada", "Lovelace", "+15550002222"
        )
        assert OtpStore(session).get("new@example.com", include_expired=True) is None

    @pytest.mark.asyncio
    async def test_register_rejects_existing_user(
        self,
        auth: AuthService,
        session: Session,
        test_user: User,
        mock_gateway: MagicMock,
    ):
        OtpStore(session).store(
            test_user.email, "123456", utc_now() + timedelta(minutes=10)
        )

        with pytest.raises(UserExistsError):
            await auth.register(test_user.email, "A", "B", None, "123456")

        mock_gateway.create_customer.assert_not_called()
        assert OtpStore(session).get(test_user.email) is not None

    @pytest.mark.asyncio
    async def test_register_rejects_existing_shopify_customer(
        self, auth: AuthService, session: Session, mock_gateway: MagicMock
    ):
        mock_gateway.create_customer.side_effect = UpstreamCustomerExistsError()
        OtpStore(session).store(
            "dup@example.com", "123456", utc_now() + timedelta(minutes=10)
        )

        with pytest.raises(UpstreamCustomerExistsError):
            await auth.register("dup@example.com", "A", "B", None, "123456")

        assert UserStore(session).get_by_email("dup@example.com") is None

    @pytest.mark.asyncio
    async def test_register_checks_otp_first(
        self, auth: AuthService, session: Session, mock_gateway: MagicMock
    ):
        OtpStore(session).store(
            "new@example.com", "123456", utc_now() + timedelta(minutes=10)
        )

        with pytest.raises(InvalidOtpError):
            await auth.register("new@example.com", "A", "B", None, "000000")

        mock_gateway.create_customer.assert_not_called()


    @pytest.mark.asyncio
    async def test_register_fails_if_code_is_claimed_meanwhile(
        self, auth: AuthService, session: Session, mock_gateway: MagicMock
    ):
        otp_id = (
            OtpStore(session)
            .store("new@example.com", "123456", utc_now() + timedelta(minutes=10))
            .id
        )

        def create_while_code_is_claimed(email, first, last, phone=None):
            assert OtpStore(session).consume(otp_id, email) is True
            return make_upstream(email, is_new_customer=True)

        mock_gateway.create_customer.side_effect = create_while_code_is_claimed

        with pytest.raises(OtpNotFoundError):
            await auth.register("new@example.com", "A", "B", None, "123456")

        assert session.exec(select(AuthSession)).all() == []


class TestValidate:
    @pytest.mark.asyncio
    async def test_unknown_token(self, auth: AuthService):
        with pytest.raises(InvalidSessionError):
            await auth.validate("nope")

    @pytest.mark.asyncio
    async def test_expired_session_is_revoked(
        self, auth: AuthService, session: Session, test_user: User
    ):
        SessionStore(session).create(
            test_user.id, "tok", utc_now() - timedelta(seconds=1)
        )

        with pytest.raises(SessionExpiredError):
            await auth.validate("tok")

        assert SessionStore(session).get_any("tok").revoked is True
        with pytest.raises(InvalidSessionError):
            await auth.validate("tok")

    @pytest.mark.asyncio
    async def test_session_without_user_is_invalid(
        self, auth: AuthService, session: Session
    ):
        SessionStore(session).create(9999, "orphan", utc_now() + timedelta(days=1))

        with pytest.raises(InvalidSessionError) as exc_info:
            await auth.validate("orphan")

        assert exc_info.value.message == "User not found"

    @pytest.mark.asyncio
    async def test_revoked_session_never_validates(
        self, auth: AuthService, session: Session, test_user: User
    ):
        store = SessionStore(session)
        store.create(test_user.id, "tok", utc_now() + timedelta(days=30))
        auth.logout("tok")

        with pytest.raises(InvalidSessionError):
            await auth.validate("tok")

    @pytest.mark.asyncio
    async def test_valid_session_refreshes_via_storefront(
        self,
        auth: AuthService,
        session: Session,
        test_user: User,
        mock_gateway: MagicMock,
    ):
        SessionStore(session).create(
            test_user.id, "tok", utc_now() + timedelta(days=30)
        )

        user = await auth.validate("tok")

        assert user.id == test_user.id
        mock_gateway.find_by_email.assert_awaited_with(
            test_user.email, api="storefront"
        )

    @pytest.mark.asyncio
    async def test_upstream_failure_serves_cached_user(
        self,
        auth: AuthService,
        session: Session,
        test_user: User,
        mock_gateway: MagicMock,
    ):
        mock_gateway.find_by_email.side_effect = UpstreamUnavailableError()
        SessionStore(session).create(
            test_user.id, "tok", utc_now() + timedelta(days=30)
        )

        user = await auth.validate("tok")

        assert user.id == test_user.id
        assert user.email == test_user.email
        assert user.data_source is None

    @pytest.mark.asyncio
    async def test_unexpected_refresh_error_serves_cached_user(
        self,
        auth: AuthService,
        session: Session,
        test_user: User,
        mock_gateway: MagicMock,
    ):
        mock_gateway.find_by_email.side_effect = RuntimeError("boom")
        SessionStore(session).create(
            test_user.id, "tok", utc_now() + timedelta(days=30)
        )

        user = await auth.validate("tok")

        assert user.id == test_user.id

    @pytest.mark.asyncio
    async def test_refresh_merges_upstream_profile(
        self,
        auth: AuthService,
        session: Session,
        test_user: User,
        mock_gateway: MagicMock,
    ):
        mock_gateway.find_by_email.return_value = make_upstream(test_user.email)
        SessionStore(session).create(
            test_user.id, "tok", utc_now() + timedelta(days=30)
        )

        user = await auth.validate("tok")

        assert user.id == test_user.id
        assert user.shopify_id == "gid://shopify/Customer/1001"
        assert user.number_of_orders == 3


def test_logout_unknown_token_succeeds(auth: AuthService):
    auth.logout("never-issued")
