"""Tests for auth domain router."""

from datetime import timedelta
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlmodel import Session

from app.auth.stores import OtpStore, SessionStore
from app.core.clock import utc_now
from app.core.exceptions import EmailDeliveryError
from app.shopify.exceptions import UpstreamUnavailableError
from app.user.models import User
from app.user.store import UserStore
from tests.helpers import last_sent_code

# --- POST /auth/send-otp ---


def test_send_otp(client: TestClient, mock_send_email: MagicMock):
    response = client.post("/auth/send-otp", json={"email": "test@example.com"})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["email"] == "test@example.com"
    assert "message" in data
    mock_send_email.assert_called_once()


def test_send_otp_invalid_email(client: TestClient):
    response = client.post("/auth/send-otp", json={"email": "not-an-email"})

    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert "email" in data["error"]


def test_send_otp_missing_email(client: TestClient):
    response = client.post("/auth/send-otp", json={})

    assert response.status_code == 400
    assert "email" in response.json()["error"]


def test_send_otp_not_a_customer(client: TestClient, mock_gateway: MagicMock):
    mock_gateway.exists_by_email.return_value = False

    response = client.post("/auth/send-otp", json={"email": "nobody@example.com"})

    assert response.status_code == 404
    assert response.json()["type"] == "customer_not_found"


def test_send_otp_shopify_unavailable(client: TestClient, mock_gateway: MagicMock):
    mock_gateway.exists_by_email.side_effect = UpstreamUnavailableError()

    response = client.post("/auth/send-otp", json={"email": "a@example.com"})

    assert response.status_code == 502
    assert response.json()["type"] == "upstream_unavailable"


def test_send_otp_email_failure(client: TestClient, mock_send_email: MagicMock):
    mock_send_email.side_effect = EmailDeliveryError()

    response = client.post("/auth/send-otp", json={"email": "a@example.com"})

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Failed to send email",
        "type": "email_delivery_failed",
    }


# --- POST /auth/send-otp-register ---


def test_send_otp_register(client: TestClient, mock_gateway: MagicMock):
    mock_gateway.exists_by_email.return_value = False

    response = client.post("/auth/send-otp-register", json={"email": "n@example.com"})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["expiresIn"] == "10 minutes"


# --- POST /auth/verify-otp ---


def test_latest_otp_wins_over_http(client: TestClient, mock_send_email: MagicMock):
    client.post("/auth/send-otp", json={"email": "a@example.com"})
    first = last_sent_code(mock_send_email)
    client.post("/auth/send-otp", json={"email": "a@example.com"})
    second = last_sent_code(mock_send_email)

    if first != second:
        stale = client.post(
            "/auth/verify-otp", json={"email": "a@example.com", "otp": first}
        )
        assert stale.status_code == 400
        assert stale.json()["error"] == "Invalid OTP"

    response = client.post(
        "/auth/verify-otp", json={"email": "a@example.com", "otp": second}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["token"]
    assert data["expiresIn"] == "30 days"
    assert data["user"]["email"] == "a@example.com"


def test_verify_otp_not_found(client: TestClient):
    response = client.post(
        "/auth/verify-otp", json={"email": "a@example.com", "otp": "123456"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "OTP not found"


def test_verify_otp_expired(client: TestClient, session: Session):
    OtpStore(session).store("a@example.com", "123456", utc_now() - timedelta(minutes=1))

    response = client.post(
        "/auth/verify-otp", json={"email": "a@example.com", "otp": "123456"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "OTP expired"


def test_verify_otp_malformed_code(client: TestClient):
    response = client.post(
        "/auth/verify-otp", json={"email": "a@example.com", "otp": "12ab"}
    )

    assert response.status_code == 400
    assert "otp" in response.json()["error"]


# --- POST /auth/register ---


def test_register_flow(
    client: TestClient, session: Session, mock_send_email: MagicMock
):
    client.post("/auth/send-otp-register", json={"email": "new@example.com"})
    code = last_sent_code(mock_send_email)

    response = client.post(
        "/auth/register",
        json={
            "email": "new@example.com",
            "firstName": "Ada",
            "lastName": "Lovelace",
            "phone": "+15550002222",
            "otp": code,
        },
    )

    assert response.status_code == 200
    data = response.json()
    user = UserStore(session).get_by_email("new@example.com")
    assert data["token"]
    assert data["user"]["id"] == user.id
    assert data["user"]["shopify_id"] == "gid://shopify/Customer/1001"
    assert data["expiresIn"] == "30 days"


def test_register_missing_fields(client: TestClient):
    response = client.post(
        "/auth/register", json={"email": "new@example.com", "otp": "123456"}
    )

    assert response.status_code == 400
    assert "firstName" in response.json()["error"]


def test_register_existing_user(
    client: TestClient, session: Session, test_user: User
):
    OtpStore(session).store(test_user.email, "123456", utc_now() + timedelta(minutes=5))

    response = client.post(
        "/auth/register",
        json={
            "email": test_user.email,
            "firstName": "Test",
            "lastName": "User",
            "otp": "123456",
        },
    )

    assert response.status_code == 400
    assert "already exists" in response.json()["error"]


def test_register_shopify_unavailable(
    client: TestClient, session: Session, mock_gateway: MagicMock
):
    mock_gateway.create_customer.side_effect = UpstreamUnavailableError()
    OtpStore(session).store("n@example.com", "123456", utc_now() + timedelta(minutes=5))

    response = client.post(
        "/auth/register",
        json={
            "email": "n@example.com",
            "firstName": "N",
            "lastName": "U",
            "otp": "123456",
        },
    )

    assert response.status_code == 502


# --- POST /auth/validate and /auth/logout ---


def test_validate_session(client: TestClient, session: Session, test_user: User):
    SessionStore(session).create(test_user.id, "tok", utc_now() + timedelta(days=1))

    response = client.post("/auth/validate", json={"token": "tok"})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["user"]["id"] == test_user.id


def test_validate_unknown_token(client: TestClient):
    response = client.post("/auth/validate", json={"token": "nope"})

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_validate_oversized_token_is_unauthorized(client: TestClient):
    response = client.post("/auth/validate", json={"token": "x" * 200})

    assert response.status_code == 401
    assert response.json()["type"] == "invalid_session"


def test_validate_session_whose_user_is_gone(client: TestClient, session: Session):
    SessionStore(session).create(9999, "orphan", utc_now() + timedelta(days=1))

    response = client.post("/auth/validate", json={"token": "orphan"})

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": "User not found",
        "type": "invalid_session",
    }


def test_logout_oversized_token_succeeds(client: TestClient):
    response = client.post("/auth/logout", json={"token": "x" * 200})

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_validate_soft_fails_on_upstream_error(
    client: TestClient, session: Session, test_user: User, mock_gateway: MagicMock
):
    mock_gateway.find_by_email.side_effect = UpstreamUnavailableError()
    SessionStore(session).create(test_user.id, "tok", utc_now() + timedelta(days=1))

    response = client.post("/auth/validate", json={"token": "tok"})

    assert response.status_code == 200
    assert response.json()["user"]["email"] == test_user.email


def test_expired_token_then_logout(
    client: TestClient, session: Session, test_user: User
):
    SessionStore(session).create(test_user.id, "tok", utc_now() - timedelta(days=1))

    validate = client.post("/auth/validate", json={"token": "tok"})
    logout = client.post("/auth/logout", json={"token": "tok"})

    assert validate.status_code == 401
    assert validate.json()["type"] == "session_expired"
    assert logout.status_code == 200
    assert logout.json()["success"] is True


def test_logout_then_validate(client: TestClient, session: Session, test_user: User):
    SessionStore(session).create(test_user.id, "tok", utc_now() + timedelta(days=1))

    client.post("/auth/logout", json={"token": "tok"})
    response = client.post("/auth/validate", json={"token": "tok"})

    assert response.status_code == 401


def test_logout_missing_token(client: TestClient):
    response = client.post("/auth/logout", json={})

    assert response.status_code == 400
    assert "token" in response.json()["error"]
