"""User domain schemas.

UserProfile is the merged view returned to the app: local identity fields
plus whatever the Shopify customer record contributes.
"""

from datetime import UTC, datetime
from decimal import Decimal

from pydantic import field_serializer
from sqlmodel import SQLModel

from app.shopify.schemas import MailingAddress


class UserProfile(SQLModel):
    """Response schema for the authenticated user.

    id, email, created_at and updated_at always come from the local row.
    """

    id: int
    email: str
    name: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    shopify_id: str | None = None
    shopify_created_at: datetime | None = None
    number_of_orders: int = 0
    total_spent: Decimal = Decimal("0")
    currency_code: str | None = None
    data_source: str | None = None
    is_new_customer: bool = False
    default_address: MailingAddress | None = None
    addresses: list[MailingAddress] = []
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at", "shopify_created_at")
    def serialize_datetime(self, value: datetime | None) -> str | None:
        """Format datetime as ISO 8601 string in UTC.

        Converts datetime to UTC timezone and formats with Z suffix
        (e.g. 2026-01-19T12:34:56Z).
        """
        if value is None:
            return None
        if value.tzinfo is not None:
            utc_value = value.astimezone(UTC)
        else:
            # Naive datetime - assume it's already UTC (SQLite drops tzinfo)
            utc_value = value.replace(tzinfo=UTC)

        return utc_value.replace(microsecond=0).isoformat().replace("+00:00", "Z")
