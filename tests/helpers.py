"""Builders shared across test modules."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import MagicMock

from app.core.settings import Settings
from app.shopify.schemas import DataSource, UpstreamCustomer


def make_settings(**overrides) -> Settings:
    """Build Settings from env-style keys, independent of the process env."""
    values = {
        "ENV_NAME": "test",
        "DATABASE_URL": "sqlite://",
        "SESSION_SECRET_KEY": "test-secret-key",
        "ADMIN_USERNAME": "admin",
        "ADMIN_PASSWORD": "admin-password",
        "RESEND_API_KEY": "re_test_key",
        "SHOPIFY_STORE_DOMAIN": "test-shop.myshopify.com",
        "SHOPIFY_ADMIN_ACCESS_TOKEN": "shpat_test",
        "SHOPIFY_STOREFRONT_ACCESS_TOKEN": "storefront_test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_upstream(email: str = "test@example.com", **fields) -> UpstreamCustomer:
    """Build an Admin API customer record."""
    values = {
        "email": email,
        "data_source": DataSource.admin,
        "id": "gid://shopify/Customer/1001",
        "first_name": "Test",
        "last_name": "Customer",
        "phone": "+15550001111",
        "created_at": datetime(2024, 3, 1, 9, 30, tzinfo=UTC),
        "number_of_orders": 3,
        "total_spent": Decimal("120.50"),
        "currency_code": "USD",
    }
    values.update(fields)
    return UpstreamCustomer(**values)


def last_sent_code(mock_send_email: MagicMock) -> str:
    """Return the code passed to the most recent send_otp_email call."""
    return mock_send_email.call_args.args[1]
