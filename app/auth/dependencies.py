"""Auth domain dependencies."""

from typing import Annotated

from fastapi import Depends

from app.auth.service import AuthService
from app.auth.stores import OtpStore, SessionStore
from app.core.deps import SessionDep, SettingsDep
from app.identity.service import IdentityServiceDep
from app.user.store import UserStore


def get_auth_service(
    session: SessionDep,
    settings: SettingsDep,
    identity: IdentityServiceDep,
) -> AuthService:
    """Build the auth flow service for one request.

    The stores and the identity service share the request's database
    session.
    """
    return AuthService(
        otp_store=OtpStore(session),
        session_store=SessionStore(session),
        user_store=UserStore(session),
        identity=identity,
        settings=settings,
    )


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
