"""Centralized dependency type aliases for FastAPI routes.

Import shared dependencies from this single module:
    from app.core.deps import SessionDep, SettingsDep, CustomerGatewayDep
"""

from typing import Annotated

from fastapi import Depends
from sqlmodel import Session

from app.core.settings import Settings, get_settings
from app.db.engine import get_session
from app.shopify.gateway import CustomerGateway, get_customer_gateway

# Database session
SessionDep = Annotated[Session, Depends(get_session)]

# Application settings
SettingsDep = Annotated[Settings, Depends(get_settings)]

# Shopify customer gateway (override get_customer_gateway in tests)
CustomerGatewayDep = Annotated[CustomerGateway, Depends(get_customer_gateway)]
