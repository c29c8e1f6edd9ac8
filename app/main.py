import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqladmin import Admin

from app.admin.auth import AdminAuth
from app.admin.views import AuthSessionAdmin, UserAdmin
from app.core.cors import add_cors_middleware
from app.core.email import init_resend
from app.core.exception_handlers import register_exception_handlers
from app.core.http import close_shopify_client
from app.core.logging import configure_logging
from app.core.request_logging import add_request_logging_middleware
from app.db.engine import engine
from app.router import api_router
from app.shopify.gateway import get_customer_gateway

configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_resend()
    # Validates SHOPIFY_* once; a malformed domain stops startup here.
    config = get_customer_gateway().config
    logger.info(
        "Shopify configured: admin=%s storefront=%s",
        config.admin_configured,
        config.storefront_configured,
    )
    yield
    await close_shopify_client()


app = FastAPI(title="Storefront Auth", version="0.1.0", lifespan=lifespan)

app.include_router(api_router)

add_request_logging_middleware(app)
add_cors_middleware(app)
register_exception_handlers(app)

# Mount SQLAdmin UI at /admin (SQLAdmin enables sessions via auth backend secret)
admin = Admin(
    app=app,
    engine=engine,
    authentication_backend=AdminAuth(),
)
admin.add_view(UserAdmin)
admin.add_view(AuthSessionAdmin)
