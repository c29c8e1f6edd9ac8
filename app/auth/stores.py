"""Persistence for OTP codes and sessions."""

import secrets
from datetime import datetime

from sqlalchemy import delete, or_
from sqlmodel import Session, col, select

from app.auth.models import AuthSession, Otp
from app.core.clock import as_utc, utc_now


def generate_otp_code() -> str:
    """Return a uniformly random 6-digit code (100000-999999)."""
    return str(100000 + secrets.randbelow(900000))


def generate_session_token() -> str:
    """Return a URL-safe token carrying 256 bits of randomness."""
    return secrets.token_urlsafe(32)


def is_expired(expires_at: datetime, now: datetime | None = None) -> bool:
    return as_utc(expires_at) <= (now or utc_now())


class OtpStore:
    """OTP rows keyed by email. The newest row per email wins."""

    def __init__(self, session: Session):
        self._session = session

    def store(self, email: str, code: str, expires_at: datetime) -> Otp:
        otp = Otp(email=email, code=code, expires_at=expires_at)
        self._session.add(otp)
        self._session.commit()
        self._session.refresh(otp)
        return otp

    def get(self, email: str, include_expired: bool = False) -> Otp | None:
        """Return the newest unexpired OTP for an email.

        With include_expired the newest row is returned whatever its expiry,
        so callers can tell an expired code from one never issued.
        """
        statement = select(Otp).where(Otp.email == email)
        if not include_expired:
            statement = statement.where(col(Otp.expires_at) > utc_now())
        return self._session.exec(
            statement.order_by(col(Otp.created_at).desc(), col(Otp.id).desc())
        ).first()

    def consume(self, otp_id: int, email: str) -> bool:
        """Delete a verified OTP and every other code for the email.

        Returns False when the row was already gone, i.e. another request
        consumed it first. The delete by id is the claim; only one caller can
        see a rowcount of 1.
        """
        claimed = self._session.exec(delete(Otp).where(col(Otp.id) == otp_id))
        if claimed.rowcount:
            self._session.exec(delete(Otp).where(col(Otp.email) == email))
        self._session.commit()
        return claimed.rowcount == 1

    def delete(self, email: str) -> int:
        result = self._session.exec(delete(Otp).where(col(Otp.email) == email))
        self._session.commit()
        return result.rowcount

    def purge_expired(self) -> int:
        result = self._session.exec(
            delete(Otp).where(col(Otp.expires_at) <= utc_now())
        )
        self._session.commit()
        return result.rowcount


class SessionStore:
    """Opaque session tokens."""

    def __init__(self, session: Session):
        self._session = session

    def create(self, user_id: int, token: str, expires_at: datetime) -> AuthSession:
        auth_session = AuthSession(user_id=user_id, token=token, expires_at=expires_at)
        self._session.add(auth_session)
        self._session.commit()
        self._session.refresh(auth_session)
        return auth_session

    def get(self, token: str) -> AuthSession | None:
        """Return the non-revoked session for a token, expired or not."""
        return self._session.exec(
            select(AuthSession).where(
                AuthSession.token == token,
                col(AuthSession.revoked).is_(False),
            )
        ).first()

    def get_any(self, token: str) -> AuthSession | None:
        """Return the session for a token including revoked ones."""
        return self._session.exec(
            select(AuthSession).where(AuthSession.token == token)
        ).first()

    def revoke(self, token: str) -> None:
        auth_session = self.get_any(token)
        if auth_session is None or auth_session.revoked:
            return
        auth_session.revoked = True
        self._session.add(auth_session)
        self._session.commit()

    def cleanup_expired(self) -> int:
        """Delete revoked and expired sessions. Returns the number removed."""
        result = self._session.exec(
            delete(AuthSession).where(
                or_(
                    col(AuthSession.expires_at) < utc_now(),
                    col(AuthSession.revoked).is_(True),
                )
            )
        )
        self._session.commit()
        return result.rowcount
