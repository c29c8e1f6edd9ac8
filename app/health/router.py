"""Health domain router.

Health check endpoint for monitoring and load balancers.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.constants import Routes
from app.core.deps import SessionDep, SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix=Routes.HEALTH.prefix, tags=[Routes.HEALTH.tag])


@router.get("")
async def health(session: SessionDep, settings: SettingsDep):
    """Health check with database connectivity verification.

    Shopify is reported as configured or not; it is never called from here.
    """
    shopify = (
        "configured"
        if settings.shopify_store_domain and settings.shopify_admin_access_token
        else "not_configured"
    )
    try:
        session.exec(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check database error: %s", e)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "error", "shopify": shopify},
        )
    return {"status": "ok", "database": "ok", "shopify": shopify}
