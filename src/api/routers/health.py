"""Health check API endpoint."""

import logging
from datetime import datetime, timezone
from typing import Dict, Any

from fastapi import APIRouter

from src.constants import COLLECTION_USER_PROFILES

from ..schemas.common import HealthStatus

logger = logging.getLogger(__name__)
router = APIRouter()

SERVICE_VERSION = "1.0.0"


@router.get(
    "/health",
    response_model=HealthStatus,
    operation_id="getHealth",
    summary="Check service health",
)
async def health_check():
    """
    Check the health of all service components.

    **No authentication required**.

    Returns status of:
    - Document store (one point read)
    - Blob storage configuration
    - I/O executor pool
    """
    components: Dict[str, Dict[str, Any]] = {}

    # Document store
    try:
        from src.db.config import get_document_store, get_document_store_config

        store = get_document_store()
        await store.get(COLLECTION_USER_PROFILES, "__health__")
        components["document_store"] = {
            "status": "healthy",
            "backend": get_document_store_config().backend,
        }
    except Exception as e:
        logger.warning(f"Document store health check failed: {e}")
        components["document_store"] = {
            "status": "unhealthy",
            "message": str(e)
        }

    # Blob storage (configuration only; reconciliation needs it, triggers do not)
    try:
        from src.storage.config import get_storage_config

        config = get_storage_config()
        components["storage"] = {
            "status": "healthy",
            "bucket": config.bucket,
        }
    except Exception as e:
        components["storage"] = {
            "status": "degraded",
            "message": str(e)
        }

    from src.core.executors import get_executors
    components["executors"] = {
        "status": "healthy",
        **get_executors().get_stats(),
    }

    statuses = {c.get("status") for c in components.values()}
    if "unhealthy" in statuses:
        overall = "unhealthy"
    elif "degraded" in statuses:
        overall = "degraded"
    else:
        overall = "healthy"

    return HealthStatus(
        status=overall,
        version=SERVICE_VERSION,
        timestamp=datetime.now(timezone.utc),
        components=components,
    )


@router.get(
    "/",
    response_model=Dict[str, str],
    operation_id="getRoot",
    summary="Get API information",
)
async def root():
    """Root endpoint with API information and documentation links."""
    return {
        "service": "Props Integrity Service",
        "version": SERVICE_VERSION,
        "docs": "/docs",
        "health": "/health",
    }
