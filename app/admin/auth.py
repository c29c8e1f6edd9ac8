import logging
import secrets

from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request

from app.core.settings import get_settings

logger = logging.getLogger(__name__)


def _matches(given: str, expected: str) -> bool:
    return secrets.compare_digest(given.encode(), expected.encode())


class AdminAuth(AuthenticationBackend):
    """SQLAdmin auth using Starlette sessions."""

    def __init__(self) -> None:
        # SQLAdmin signs its session cookie with this secret; it must be stable.
        settings = get_settings()
        super().__init__(secret_key=settings.session_secret_key)

    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = str(form.get("username", "")).strip()
        password = str(form.get("password", ""))

        settings = get_settings()
        user_ok = _matches(username, settings.admin_username)
        password_ok = _matches(password, settings.admin_password)
        if user_ok and password_ok:
            request.session["admin_user"] = username
            return True

        logger.warning("Admin login failed for username %r", username)
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        return bool(request.session.get("admin_user"))
