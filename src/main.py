"""
FastAPI service for the props quota and maintenance layer.

This service provides a REST API for:
- Subscription limit checks (shows, boards, packing boxes, props, collaborators)
- Manual cleanup of aged records (administrators)
- Database health report (administrators)
- Storage reconciliation (administrators)

Usage:
    uvicorn src.main:app --reload --host 0.0.0.0 --port 8080
"""

import logging
import os
import sys
from pathlib import Path

# Add project root to Python path for direct execution
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

# Load environment variables before importing anything else
load_dotenv()

log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from src.api.app import create_app

app = create_app()

logger.info("Props Integrity Service initialized")
logger.info("API documentation available at /docs and /redoc")


if __name__ == "__main__":
    import uvicorn

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8080"))
    reload = os.getenv("DEBUG", "false").lower() == "true"

    logger.info(f"Starting server on {host}:{port}")

    uvicorn.run(
        "src.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level.lower(),
    )
