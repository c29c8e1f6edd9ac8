from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.request_logging import REQUEST_ID_HEADER
from app.core.settings import get_settings


def add_cors_middleware(app: FastAPI):
    """Allow browser-based clients; the mobile app sends bearer tokens in bodies."""
    settings = get_settings()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
