"""User domain models.

SQLModel table definition for User.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.core.mixins import TimestampMixin


class User(TimestampMixin, SQLModel, table=True):
    """Locally owned identity, one row per email.

    The integer id is what sessions, carts and orders reference; it is never
    replaced by a Shopify id. The shopify_* columns are a denormalized cache
    of the upstream customer and may lag behind it.
    """

    __tablename__: str = "users"

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True, max_length=255)
    name: str = Field(default="", max_length=255)
    phone: str | None = Field(default=None, max_length=32)

    shopify_id: str | None = Field(default=None, max_length=255)
    shopify_created_at: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True)
    )
    number_of_orders: int = Field(default=0)
    total_spent: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    data_source: str | None = Field(default=None, max_length=32)
