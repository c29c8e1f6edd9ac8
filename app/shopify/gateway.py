"""Upstream customer gateway.

The only place that knows how Shopify customers are looked up, created and
given addresses. Everything above it (identity reconciliation, routers)
depends on the CustomerGateway protocol, never on httpx or GraphQL.
"""

import logging
from dataclasses import replace
from functools import lru_cache
from typing import Any, Protocol

from app.shopify.client import ShopifyGraphQLClient
from app.shopify.config import ShopifyConfig
from app.shopify.exceptions import (
    CustomerNotFoundError,
    UpstreamCustomerExistsError,
    UpstreamUnavailableError,
    UpstreamValidationError,
)
from app.shopify.parsing import (
    customer_nodes,
    match_email,
    parse_address,
    parse_customer,
)
from app.shopify.queries import (
    ADMIN_CUSTOMER_ADDRESS_CREATE,
    ADMIN_CUSTOMER_CREATE,
    ADMIN_CUSTOMER_EMAILS,
    ADMIN_FIND_CUSTOMERS,
    STOREFRONT_SHOP,
    CustomerAddressCreatePayload,
    CustomerCreatePayload,
    UserError,
)
from app.shopify.schemas import (
    DataSource,
    MailingAddress,
    MailingAddressInput,
    UpstreamApi,
    UpstreamCustomer,
)

logger = logging.getLogger(__name__)

_DUPLICATE_MARKERS = ("already been taken", "already exists")


class CustomerGateway(Protocol):
    """Protocol for upstream customer operations.

    Enables dependency inversion - code depends on this protocol,
    not the concrete implementation.
    """

    async def find_by_email(
        self, email: str, *, api: UpstreamApi = "admin"
    ) -> UpstreamCustomer | None:
        """Find the customer whose email matches exactly."""
        ...

    async def exists_by_email(self, email: str) -> bool:
        """Check whether a customer exists for an email."""
        ...

    async def create_customer(
        self,
        email: str,
        first_name: str,
        last_name: str,
        phone: str | None = None,
    ) -> UpstreamCustomer:
        """Create a new customer."""
        ...

    async def add_address(
        self, email: str, address: MailingAddressInput
    ) -> MailingAddress:
        """Add an address to the customer with this email."""
        ...


def search_query(email: str) -> str:
    """Build a Shopify search string for an exact email."""
    escaped = email.replace("\\", "\\\\").replace('"', '\\"')
    return f'email:"{escaped}"'


def _user_error_messages(user_errors: list[UserError]) -> str:
    return "; ".join(str(error.get("message", "")) for error in user_errors)


def _is_duplicate(user_errors: list[UserError]) -> bool:
    for error in user_errors:
        message = str(error.get("message", "")).lower()
        if any(marker in message for marker in _DUPLICATE_MARKERS):
            return True
    return False


def address_input(address: MailingAddressInput) -> dict[str, Any]:
    """Translate the app's address into Shopify's MailingAddressInput.

    Two-letter country values and short province values are sent as ISO
    codes; anything longer is sent as a name.
    """
    payload: dict[str, Any] = {
        "address1": address.address1,
        "city": address.city,
        "zip": address.zip,
    }
    if address.address2:
        payload["address2"] = address.address2

    country = address.country.strip()
    if len(country) == 2 and country.isalpha():
        payload["countryCode"] = country.upper()
    else:
        payload["country"] = country

    province = address.province.strip()
    if len(province) <= 3 and province.isalnum():
        payload["provinceCode"] = province.upper()
    else:
        payload["province"] = province

    return payload


class ShopifyCustomerGateway:
    """CustomerGateway backed by the Shopify GraphQL APIs."""

    def __init__(self, client: ShopifyGraphQLClient):
        self._client = client

    @property
    def config(self) -> ShopifyConfig:
        return self._client.config

    async def find_by_email(
        self, email: str, *, api: UpstreamApi = "admin"
    ) -> UpstreamCustomer | None:
        """Find a customer by exact email.

        The Admin API returns the full record. The Storefront API cannot
        search customers without a customer access token, so that path only
        confirms the Storefront API answers and returns a placeholder; it is
        never a source of truth.

        Raises:
            UpstreamUnavailableError: If the chosen API cannot answer
        """
        if api == "storefront":
            await self._client.storefront(STOREFRONT_SHOP)
            return UpstreamCustomer.placeholder(email, DataSource.storefront)

        data = await self._client.admin(
            ADMIN_FIND_CUSTOMERS, {"query": search_query(email)}
        )
        node = match_email(customer_nodes(data), email)
        if node is None:
            return None
        return parse_customer(node, email, DataSource.admin)

    async def exists_by_email(self, email: str) -> bool:
        """Check for a customer via the Admin API.

        Raises:
            UpstreamUnavailableError: If the Admin API cannot answer
        """
        data = await self._client.admin(
            ADMIN_CUSTOMER_EMAILS, {"query": search_query(email)}
        )
        return match_email(customer_nodes(data), email) is not None

    async def create_customer(
        self,
        email: str,
        first_name: str,
        last_name: str,
        phone: str | None = None,
    ) -> UpstreamCustomer:
        """Create a customer via the Admin API.

        Raises:
            UpstreamCustomerExistsError: If the email is already taken
            UpstreamValidationError: For any other userErrors
            UpstreamUnavailableError: If the Admin API cannot answer
        """
        customer_input: dict[str, Any] = {
            "email": email,
            "firstName": first_name,
            "lastName": last_name,
        }
        if phone:
            customer_input["phone"] = phone

        data = await self._client.admin(
            ADMIN_CUSTOMER_CREATE, {"input": customer_input}
        )
        payload: CustomerCreatePayload = data.get("customerCreate") or {}

        user_errors = payload.get("userErrors") or []
        if user_errors:
            logger.info(
                "Shopify customerCreate rejected: %s",
                _user_error_messages(user_errors),
                extra={"email": email, "upstream_api": "admin"},
            )
            if _is_duplicate(user_errors):
                raise UpstreamCustomerExistsError(user_errors=list(user_errors))
            raise UpstreamValidationError(
                _user_error_messages(user_errors) or "Store rejected the customer",
                user_errors=list(user_errors),
            )

        node = payload.get("customer")
        if not node:
            raise UpstreamUnavailableError(
                "Shopify customerCreate returned no customer"
            )

        customer = parse_customer(node, email, DataSource.admin)
        logger.info(
            "Shopify customer created",
            extra={"email": email, "upstream_api": "admin"},
        )
        return replace(customer, is_new_customer=True)

    async def add_address(
        self, email: str, address: MailingAddressInput
    ) -> MailingAddress:
        """Create an address on the customer with this email.

        Raises:
            CustomerNotFoundError: If no customer matches the email
            UpstreamValidationError: If Shopify rejects the address
            UpstreamUnavailableError: If the Admin API cannot answer
        """
        customer = await self.find_by_email(email, api="admin")
        if customer is None or not customer.id:
            raise CustomerNotFoundError("Customer not found")

        data = await self._client.admin(
            ADMIN_CUSTOMER_ADDRESS_CREATE,
            {
                "customerId": customer.id,
                "address": address_input(address),
                "setAsDefault": address.is_default,
            },
        )
        payload: CustomerAddressCreatePayload = data.get("customerAddressCreate") or {}

        user_errors = payload.get("userErrors") or []
        if user_errors:
            raise UpstreamValidationError(
                _user_error_messages(user_errors) or "Store rejected the address",
                user_errors=list(user_errors),
            )

        created = parse_address(payload.get("address"))
        if created is None:
            raise UpstreamUnavailableError(
                "Shopify customerAddressCreate returned no address"
            )
        return created


@lru_cache
def get_customer_gateway() -> ShopifyCustomerGateway:
    """Get cached customer gateway.

    Settings are validated into a ShopifyConfig once; a malformed store
    domain fails here, at startup, rather than on the first login.
    """
    from app.core.settings import get_settings

    config = ShopifyConfig.from_settings(get_settings())
    return ShopifyCustomerGateway(ShopifyGraphQLClient(config))
