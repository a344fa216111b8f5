"""Request logging, error handling and exception-to-response mapping."""

import logging
import time
import uuid
from typing import Callable

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from google.api_core.exceptions import GoogleAPIError
from starlette.middleware.base import BaseHTTPMiddleware

from src.core.exceptions import ServiceError
from src.utils.timer_utils import elapsed_ms

logger = logging.getLogger(__name__)

# Probe endpoints log at DEBUG
QUIET_PATHS = frozenset({"/health", "/"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its caller, status and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        caller = request.headers.get("X-User-ID") or "anonymous"
        level = logging.DEBUG if request.url.path in QUIET_PATHS else logging.INFO

        start_time = time.time()
        logger.log(level, f"[{request_id}] {request.method} {request.url.path} - Caller: {caller}")

        response = await call_next(request)

        duration_ms = elapsed_ms(start_time)
        if response.status_code >= 400:
            level = logging.WARNING
        logger.log(
            level,
            f"[{request_id}] {request.method} {request.url.path} "
            f"- {response.status_code} in {duration_ms:.1f}ms",
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-MS"] = f"{duration_ms:.1f}"

        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Render unhandled exceptions as 500s; backend errors keep their cause in the log."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except GoogleAPIError as e:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.error(f"[{request_id}] Backend error on {request.url.path}: {e}")
            return _internal_error(request_id, f"Backend error: {e}")
        except Exception as e:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.exception(f"[{request_id}] Unhandled exception: {e}")
            return _internal_error(
                request_id,
                str(e) if logger.isEnabledFor(logging.DEBUG) else "An unexpected error occurred",
            )


def _internal_error(request_id: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "internal",
            "message": message,
            "request_id": request_id,
        }
    )


def add_middleware(app: FastAPI) -> None:
    """Add all custom middleware to the application."""
    # Added last runs first: request ids are assigned before errors are rendered
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)


# =============================================================================
# Exception Handlers
# =============================================================================

async def service_error_handler(request: Request, exc: ServiceError):
    """Map service errors (validation, auth, quota, backend) to their HTTP status."""
    request_id = getattr(request.state, "request_id", "unknown")

    if exc.http_status >= 500:
        logger.error(f"[{request_id}] {exc.code}: {exc.message} - Path: {request.url.path}")
    else:
        logger.warning(f"[{request_id}] {exc.code}: {exc.message} - Path: {request.url.path}")

    content = exc.to_response_dict()
    content["request_id"] = request_id
    return JSONResponse(status_code=exc.http_status, content=content)


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(f"[{request_id}] HTTP {exc.status_code} - {exc.detail} - Path: {request.url.path}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "status_code": exc.status_code,
            "request_id": request_id,
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request-shape errors with per-field messages."""
    request_id = getattr(request.state, "request_id", "unknown")

    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
        logger.error(f"[{request_id}] Validation error - Field: {field}, Message: {error['msg']}")

    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "invalid-argument",
            "details": errors,
            "request_id": request_id,
        }
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
