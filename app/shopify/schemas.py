"""Shopify-side data shapes.

UpstreamCustomer is transient: it is merged into the local User and never
stored as-is.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

UpstreamApi = Literal["admin", "storefront"]


class DataSource(str, Enum):
    """Which Shopify API produced a customer record.

    The *_fallback values mean the other API was asked first and could not
    answer.
    """

    admin = "admin"
    storefront = "storefront"
    admin_fallback = "admin_fallback"
    storefront_fallback = "storefront_fallback"


class MailingAddress(BaseModel):
    """Address as returned by Shopify."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    address1: str | None = None
    address2: str | None = None
    city: str | None = None
    province: str | None = None
    zip: str | None = None
    country: str | None = None
    phone: str | None = None


class MailingAddressInput(BaseModel):
    """Address submitted by the app for a new customer address."""

    model_config = ConfigDict(populate_by_name=True)

    address1: str = Field(min_length=1)
    address2: str | None = None
    city: str = Field(min_length=1)
    province: str = Field(min_length=1)
    zip: str = Field(min_length=1)
    country: str = Field(min_length=1)
    is_default: bool = Field(default=False, alias="isDefault")


@dataclass(frozen=True)
class UpstreamCustomer:
    """Customer record fetched from (or created in) Shopify.

    Fields left as None mean "Shopify did not say"; the merge falls back to
    the locally cached value for them. A placeholder carries no customer data
    at all and is never persisted.
    """

    email: str
    data_source: DataSource
    id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    created_at: datetime | None = None
    number_of_orders: int | None = None
    total_spent: Decimal | None = None
    currency_code: str | None = None
    default_address: MailingAddress | None = None
    addresses: list[MailingAddress] = field(default_factory=list)
    is_new_customer: bool = False
    is_placeholder: bool = False

    @classmethod
    def placeholder(cls, email: str, data_source: DataSource) -> "UpstreamCustomer":
        return cls(email=email, data_source=data_source, is_placeholder=True)

    @property
    def display_name(self) -> str | None:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else None

    def tagged(self, data_source: DataSource) -> "UpstreamCustomer":
        return replace(self, data_source=data_source)
