"""Tolerant conversion of Shopify customer payloads.

The customer shape differs across API versions (numberOfOrders vs
ordersCount, amountSpent vs totalSpent, addresses as a list or as a
connection). Anything missing or malformed becomes None rather than an
error; the merge then keeps the locally cached value.
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import ValidationError

from app.shopify.queries import CustomerNode
from app.shopify.schemas import DataSource, MailingAddress, UpstreamCustomer

logger = logging.getLogger(__name__)


def parse_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_decimal(value: Any) -> Decimal | None:
    if isinstance(value, dict):
        value = value.get("amount")
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def parse_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_address(value: Any) -> MailingAddress | None:
    if not isinstance(value, dict):
        return None
    try:
        return MailingAddress.model_validate(value)
    except ValidationError:
        logger.debug("Skipping malformed Shopify address")
        return None


def parse_address_list(value: Any) -> list[MailingAddress]:
    """Accept a plain list, {"nodes": [...]} or {"edges": [{"node": ...}]}."""
    items: list[Any] = []
    if isinstance(value, list):
        items = value
    elif isinstance(value, dict):
        if isinstance(value.get("nodes"), list):
            items = value["nodes"]
        elif isinstance(value.get("edges"), list):
            items = [
                edge.get("node") for edge in value["edges"] if isinstance(edge, dict)
            ]

    addresses = []
    for item in items:
        address = parse_address(item)
        if address is not None:
            addresses.append(address)
    return addresses


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def parse_customer(
    node: CustomerNode, email: str, data_source: DataSource
) -> UpstreamCustomer:
    """Build an UpstreamCustomer from an Admin API customer node.

    Args:
        node: Customer node from a query or mutation payload
        email: Email to use when the node omits it
        data_source: Tag for the API that produced the node
    """
    orders = node.get("numberOfOrders")
    if orders is None:
        orders = node.get("ordersCount")

    spent = node.get("amountSpent")
    if spent is None:
        spent = node.get("totalSpent")

    currency = None
    if isinstance(spent, dict):
        currency = _text(spent.get("currencyCode"))

    return UpstreamCustomer(
        email=_text(node.get("email")) or email,
        data_source=data_source,
        id=_text(node.get("id")),
        first_name=_text(node.get("firstName")),
        last_name=_text(node.get("lastName")),
        phone=_text(node.get("phone")),
        created_at=parse_datetime(node.get("createdAt")),
        number_of_orders=parse_int(orders),
        total_spent=parse_decimal(spent),
        currency_code=currency,
        default_address=parse_address(node.get("defaultAddress")),
        addresses=parse_address_list(node.get("addresses")),
    )


def customer_nodes(data: dict[str, Any]) -> list[dict[str, Any]]:
    """Pull customer nodes out of a customers(...) connection."""
    connection = data.get("customers")
    if not isinstance(connection, dict):
        return []
    edges = connection.get("edges")
    if isinstance(edges, list):
        return [
            edge["node"]
            for edge in edges
            if isinstance(edge, dict) and isinstance(edge.get("node"), dict)
        ]
    nodes = connection.get("nodes")
    if isinstance(nodes, list):
        return [node for node in nodes if isinstance(node, dict)]
    return []


def match_email(nodes: list[dict[str, Any]], email: str) -> dict[str, Any] | None:
    """Return the first node whose email equals ``email`` exactly.

    Shopify's email search is fuzzy and case-insensitive; emails are compared
    as stored, the same way the local users table keys them.
    """
    for node in nodes:
        if node.get("email") == email:
            return node
    return None
