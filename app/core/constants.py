"""
App-wide constants for route configuration.

This module provides a single source of truth for route prefixes, tags,
and common response definitions for API routes.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape


@dataclass(frozen=True)
class RouteConfig:
    """Configuration for a route group."""

    prefix: str
    tag: str


class Routes:
    """Route configurations for all API endpoints."""

    AUTH = RouteConfig(prefix="/auth", tag="auth")
    # Address management lives under /auth for compatibility with the app.
    CUSTOMER = RouteConfig(prefix="/auth", tag="customer")
    HEALTH = RouteConfig(prefix="/health", tag="health")


# Common response definitions for reuse across routers
# Use these when configuring APIRouter or individual endpoints
class CommonResponses:
    """Standard HTTP error response definitions for OpenAPI documentation."""

    BAD_REQUEST: dict[int, dict[str, Any]] = {
        400: {"description": "Invalid request data"}
    }
    UNAUTHORIZED: dict[int, dict[str, Any]] = {
        401: {"description": "Invalid or expired session"}
    }
    NOT_FOUND: dict[int, dict[str, Any]] = {404: {"description": "Resource not found"}}
    EMAIL_FAILED: dict[int, dict[str, Any]] = {
        500: {"description": "Email could not be sent"}
    }
    UPSTREAM_UNAVAILABLE: dict[int, dict[str, Any]] = {
        502: {"description": "Shopify is unavailable or not configured"}
    }


# HTML Templates Directory
EmailTemplatesDir = Path(__file__).parent.parent / "templates" / "emails"
CompiledEmailTemplatesDir = EmailTemplatesDir / "compiled"

# Jinja2 environment for compiled templates (used at runtime)
JinjaCompiledEmailTemplatesEnv = Environment(
    loader=FileSystemLoader(str(CompiledEmailTemplatesDir)),
    autoescape=select_autoescape(["html", "xml"]),
)
