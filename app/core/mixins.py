"""Reusable model mixins.

Provides common field patterns for SQLModel table definitions.
All timestamps are timezone-aware UTC columns.
"""

from datetime import datetime

from sqlalchemy import DateTime, text
from sqlmodel import Field

from app.core.clock import utc_now


def _utc_now_seconds() -> datetime:
    """Return current UTC time without microseconds."""
    return utc_now().replace(microsecond=0)


class CreatedAtMixin:
    """Mixin that adds a full-precision created_at timestamp.

    Used by rows that are ordered by creation time (OTP codes), where
    second precision would produce ties.
    """

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps.

    Timestamps are stored without microseconds for cleaner output.

    Usage:
        class MyModel(TimestampMixin, SQLModel, table=True):
            id: int = Field(primary_key=True)
            name: str
    """

    created_at: datetime = Field(
        default_factory=_utc_now_seconds,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )
    updated_at: datetime = Field(
        default_factory=_utc_now_seconds,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={
            "server_default": text("CURRENT_TIMESTAMP"),
            "onupdate": _utc_now_seconds,
        },
    )
