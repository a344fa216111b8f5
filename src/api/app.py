"""FastAPI application factory."""

import json
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from .middleware import add_middleware, register_exception_handlers
from .routers import (
    health_router,
    limits_router,
    maintenance_router,
)

logger = logging.getLogger(__name__)

# =============================================================================
# OpenAPI Configuration
# =============================================================================

OPENAPI_TAGS = [
    {
        "name": "Health",
        "description": "Service health checks and status endpoints",
    },
    {
        "name": "Limits",
        "description": "Subscription limits: usage of shows, boards, packing boxes, props and collaborators against the plan",
    },
    {
        "name": "Maintenance",
        "description": "Administrative operations: manual cleanup, database health report, storage reconciliation",
    },
]

API_DESCRIPTION = """
Quota enforcement and data maintenance for the props and shows tracker.

## Limits
Report a user's usage of one resource kind against their subscription plan.

## Maintenance (administrators only)
- **Manual cleanup**: delete aged documents from an allow-listed collection, dry run by default
- **Health report**: totals and cleanup opportunities per maintained collection
- **Storage reconciliation**: find uploaded files no document references, and references whose file is gone

---

## Authentication

### Headers
- `X-User-ID`: Authenticated caller, set by the authenticating proxy (required for all endpoints except /health)
- `X-API-Key`: API key (required if `API_KEY_REQUIRED=true` in environment)

---

## Response Format
Successful responses use camelCase fields. Errors return:
- `success`: false
- `error`: stable code (`invalid-argument`, `unauthenticated`, `permission-denied`, `internal`)
- `message`: human-readable description
"""


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    logger.info("Starting Props Integrity Service API...")

    try:
        from src.db.config import get_document_store_config
        config = get_document_store_config()
        logger.info(f"Document store backend: {config.backend}")
    except ValueError as e:
        logger.error(f"Invalid document store configuration: {e}")
        raise

    yield

    logger.info("Shutting down Props Integrity Service API...")

    from src.core.executors import shutdown_executors
    shutdown_executors(wait=True)
    logger.info("Executors shut down")

    logger.info("Shutdown complete")


def custom_openapi(app: FastAPI) -> Dict[str, Any]:
    """Generate custom OpenAPI schema with security schemes and server configuration."""
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        tags=OPENAPI_TAGS,
    )

    openapi_schema["servers"] = [
        {"url": "http://localhost:8080", "description": "Local development server"},
    ]

    if "components" not in openapi_schema:
        openapi_schema["components"] = {}

    openapi_schema["components"]["securitySchemes"] = {
        "UserId": {
            "type": "apiKey",
            "in": "header",
            "name": "X-User-ID",
            "description": "Authenticated caller (required for all endpoints except /health)",
        },
        "ApiKey": {
            "type": "apiKey",
            "in": "header",
            "name": "X-API-Key",
            "description": "API key for authentication (optional, required if API_KEY_REQUIRED=true)",
        },
    }

    openapi_schema["security"] = [
        {"UserId": []},
    ]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


def _parse_cors_origins(raw: str) -> list:
    try:
        origins = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"CORS_ORIGINS is not valid JSON, allowing all origins: {raw!r}")
        return ["*"]
    if isinstance(origins, str):
        return [origins]
    return list(origins)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    api_prefix = os.getenv("API_PREFIX", "/api/v1")
    debug = os.getenv("DEBUG", "false").lower() == "true"

    app = FastAPI(
        title="Props Integrity Service",
        description=API_DESCRIPTION,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        debug=debug,
    )

    app.openapi = lambda: custom_openapi(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_parse_cors_origins(os.getenv("CORS_ORIGINS", '["*"]')),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Custom middleware (logging, error handling)
    add_middleware(app)

    register_exception_handlers(app)

    app.include_router(
        health_router,
        tags=["Health"],
    )

    app.include_router(
        limits_router,
        prefix=f"{api_prefix}/limits",
        tags=["Limits"],
    )

    app.include_router(
        maintenance_router,
        prefix=f"{api_prefix}/maintenance",
        tags=["Maintenance"],
    )

    return app
