"""Auth domain models.

OTP codes and opaque session tokens. Both are owned by the server; the app
only ever sees a code (by email) and a token.
"""

from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.core.clock import utc_now
from app.core.mixins import CreatedAtMixin


class Otp(CreatedAtMixin, SQLModel, table=True):
    """One issued login/registration code.

    Several rows may exist per email; only the newest one counts.
    """

    __tablename__: str = "otp"

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(index=True, max_length=255)
    code: str = Field(max_length=6)
    expires_at: datetime = Field(sa_type=DateTime(timezone=True))


class AuthSession(SQLModel, table=True):
    """Opaque bearer session for a user.

    A revoked session is never reactivated.
    """

    __tablename__: str = "sessions"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    token: str = Field(unique=True, index=True, max_length=128)
    expires_at: datetime = Field(sa_type=DateTime(timezone=True))
    revoked: bool = Field(default=False)
    created_at: datetime = Field(
        default_factory=utc_now, sa_type=DateTime(timezone=True)
    )
