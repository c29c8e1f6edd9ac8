"""Customer domain router.

Address management is a pass-through to the Shopify customer; nothing is
stored locally.
"""

import logging

from fastapi import APIRouter

from app.core.constants import CommonResponses, Routes
from app.core.deps import CustomerGatewayDep
from app.customer.schemas import AddAddressRequest, AddAddressResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix=Routes.CUSTOMER.prefix,
    tags=[Routes.CUSTOMER.tag],
    responses={**CommonResponses.BAD_REQUEST},
)


@router.post(
    "/add-address",
    response_model=AddAddressResponse,
    responses={
        **CommonResponses.NOT_FOUND,
        **CommonResponses.UPSTREAM_UNAVAILABLE,
    },
)
async def add_address(body: AddAddressRequest, gateway: CustomerGatewayDep):
    """Add an address to the Shopify customer with this email."""
    address = await gateway.add_address(body.email, body.address)
    logger.info(
        "Customer address added",
        extra={"flow": "add_address", "email": body.email},
    )
    return AddAddressResponse(address=address)
