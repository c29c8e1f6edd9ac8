"""GraphQL documents and response shapes for the Shopify APIs.

Admin API: https://shopify.dev/docs/api/admin-graphql
Storefront API: https://shopify.dev/docs/api/storefront
"""

from typing import NotRequired, TypedDict

_ADDRESS_FIELDS = """
    id
    address1
    address2
    city
    province
    zip
    country
    phone
"""

_CUSTOMER_FIELDS = f"""
    id
    email
    firstName
    lastName
    phone
    createdAt
    numberOfOrders
    amountSpent {{
        amount
        currencyCode
    }}
    defaultAddress {{{_ADDRESS_FIELDS}}}
    addresses(first: 10) {{{_ADDRESS_FIELDS}}}
"""

# Search results are fuzzy; callers filter for an exact email match.
ADMIN_FIND_CUSTOMERS = f"""
query FindCustomersByEmail($query: String!) {{
    customers(first: 5, query: $query) {{
        edges {{
            node {{{_CUSTOMER_FIELDS}}}
        }}
    }}
}}
"""

ADMIN_CUSTOMER_EMAILS = """
query CustomerEmails($query: String!) {
    customers(first: 5, query: $query) {
        edges {
            node {
                id
                email
            }
        }
    }
}
"""

ADMIN_CUSTOMER_CREATE = f"""
mutation CustomerCreate($input: CustomerInput!) {{
    customerCreate(input: $input) {{
        customer {{{_CUSTOMER_FIELDS}}}
        userErrors {{
            field
            message
        }}
    }}
}}
"""

ADMIN_CUSTOMER_ADDRESS_CREATE = f"""
mutation CustomerAddressCreate(
    $customerId: ID!
    $address: MailingAddressInput!
    $setAsDefault: Boolean
) {{
    customerAddressCreate(
        customerId: $customerId
        address: $address
        setAsDefault: $setAsDefault
    ) {{
        address {{{_ADDRESS_FIELDS}}}
        userErrors {{
            field
            message
        }}
    }}
}}
"""

# The Storefront API has no email search without a customer access token;
# this only proves the endpoint and token are usable.
STOREFRONT_SHOP = """
query StorefrontShop {
    shop {
        name
    }
}
"""


class UserError(TypedDict, total=False):
    field: list[str] | None
    message: str


class MoneyV2(TypedDict, total=False):
    amount: str
    currencyCode: str


class CustomerNode(TypedDict, total=False):
    """Customer node; older API versions use ordersCount/totalSpent."""

    id: str
    email: str | None
    firstName: str | None
    lastName: str | None
    phone: str | None
    createdAt: str
    numberOfOrders: NotRequired[str | int]
    ordersCount: NotRequired[str | int]
    amountSpent: NotRequired[MoneyV2]
    totalSpent: NotRequired[str]
    defaultAddress: NotRequired[dict | None]
    addresses: NotRequired[list[dict] | dict]


class CustomerCreatePayload(TypedDict, total=False):
    customer: CustomerNode | None
    userErrors: list[UserError]


class CustomerAddressCreatePayload(TypedDict, total=False):
    address: dict | None
    userErrors: list[UserError]
