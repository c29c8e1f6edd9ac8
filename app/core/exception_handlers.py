"""Global exception handlers for consistent error responses.

Every error leaves the API as ``{"success": false, "error": ..., "type": ...}``,
the envelope the mobile client already branches on.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppException

logger = logging.getLogger("app.exception")


def error_body(error_type: str, message: str) -> dict[str, object]:
    """Build the JSON error envelope."""
    return {"success": False, "error": message, "type": error_type}


def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle all AppException subclasses."""
    extra = {
        "method": request.method,
        "path": request.url.path,
        "status_code": exc.status_code,
        "error_type": exc.error_type,
    }
    if exc.status_code >= 500:
        logger.error("AppException: %s - %s", exc.error_type, exc.message, extra=extra)
    else:
        logger.info("AppException: %s - %s", exc.error_type, exc.message, extra=extra)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error_type, exc.message),
    )


def http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTPException raised by Starlette (404 routes, 405 methods)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body("http_error", str(exc.detail)),
    )


def _format_validation_error(error: dict) -> str:
    field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
    return f"{field}: {error['msg']}" if field else error["msg"]


def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors as 400 naming the offending field."""
    message = "; ".join(_format_validation_error(error) for error in exc.errors())
    logger.info(
        "Validation failed: %s",
        message,
        extra={"method": request.method, "path": request.url.path, "status_code": 400},
    )
    return JSONResponse(
        status_code=400,
        content=error_body("validation_error", message),
    )


def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected errors."""
    logger.error(
        "Unhandled exception: %s %s - %s",
        request.method,
        request.url.path,
        exc,
        extra={"method": request.method, "path": request.url.path, "status_code": 500},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content=error_body("internal_error", "Server error. Please try again."),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
