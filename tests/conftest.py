import inspect
import os
from decimal import Decimal
from unittest.mock import MagicMock, patch

# Settings are read at import time by app.db.engine and app.admin.auth.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "admin-password")
os.environ.setdefault("RESEND_API_KEY", "re_test_key")

import anyio  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

from app.core.settings import Settings, get_settings  # noqa: E402
from app.db.engine import get_session  # noqa: E402
from app.main import app  # noqa: E402
from app.shopify.gateway import (  # noqa: E402
    ShopifyCustomerGateway,
    get_customer_gateway,
)
from app.user.models import User  # noqa: E402
from tests.helpers import make_settings, make_upstream  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    # Tests use @pytest.mark.asyncio, but we intentionally rely on anyio.
    config.addinivalue_line(
        "markers",
        "asyncio: run async tests using anyio (project-local hook)",
    )


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Run @pytest.mark.asyncio tests with anyio.

    This avoids adding an external pytest-asyncio dependency.
    """
    if pyfuncitem.get_closest_marker("asyncio") is None:
        return None

    test_func = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_func):
        return None

    funcargs = {
        name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
    }

    async def _run_async_test() -> None:
        await test_func(**funcargs)

    anyio.run(_run_async_test)
    return True


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="test_user")
def test_user_fixture(session: Session):
    """Create a test user in the database."""
    user = User(email="test@example.com", name="test")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture(name="mock_settings")
def mock_settings_fixture():
    return make_settings()


@pytest.fixture(name="mock_gateway")
def mock_gateway_fixture():
    """Create a mock customer gateway.

    Defaults: the customer exists, lookups find nothing, creation succeeds.
    """
    gateway = MagicMock(spec=ShopifyCustomerGateway)
    gateway.exists_by_email.return_value = True
    gateway.find_by_email.return_value = None
    gateway.create_customer.side_effect = lambda email, first, last, phone=None: (
        make_upstream(
            email,
            first_name=first,
            last_name=last or None,
            phone=phone,
            number_of_orders=0,
            total_spent=Decimal("0"),
            is_new_customer=True,
        )
    )
    return gateway


@pytest.fixture(name="mock_send_email")
def mock_send_email_fixture():
    """Capture OTP emails instead of sending them."""
    with patch("app.auth.service.send_otp_email") as mock_send:
        yield mock_send


@pytest.fixture(name="client")
def client_fixture(
    session: Session,
    mock_gateway: MagicMock,
    mock_settings: Settings,
    mock_send_email: MagicMock,
):
    """Create a test client with overridden dependencies."""

    def get_session_override():
        return session

    def get_settings_override():
        return mock_settings

    def get_customer_gateway_override():
        return mock_gateway

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_settings] = get_settings_override
    app.dependency_overrides[get_customer_gateway] = get_customer_gateway_override

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()

