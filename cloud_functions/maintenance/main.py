"""
Cloud Functions: quota enforcement, usage counters and scheduled cleanup

Firestore document triggers (JSON event encoding):
    validate_creation        - document created in shows, todo_boards,
                               packingBoxes, props or invitations
    increment_usage_counter  - document created in shows, todo_boards,
                               packingBoxes or props
    decrement_usage_counter  - document deleted in the same collections

Cloud Scheduler (Pub/Sub) triggers:
    cleanup_old_emails       - daily
    cleanup_expired_codes    - hourly
    cleanup_failed_emails    - weekly

Deployment (one deployment per collection for the document triggers):
    gcloud functions deploy validate-show-creation \
        --gen2 \
        --runtime=python312 \
        --region=us-central1 \
        --source=. \
        --entry-point=validate_creation \
        --trigger-event-filters="type=google.cloud.firestore.document.v1.created" \
        --trigger-event-filters="database=(default)" \
        --trigger-event-filters-path-pattern="document=shows/{showId}" \
        --event-data-content-type=application/json

    gcloud functions deploy cleanup-old-emails \
        --gen2 \
        --runtime=python312 \
        --region=us-central1 \
        --source=. \
        --entry-point=cleanup_old_emails \
        --trigger-topic=cleanup-old-emails

Environment Variables:
    DOCUMENT_STORE_BACKEND: firestore (default) or memory
    FIRESTORE_PROJECT / FIRESTORE_DATABASE: target database
    CLEANUP_PAGE_SIZE, MAX_BATCH_OPERATIONS, EMAIL_RETENTION_DAYS,
    FAILED_EMAIL_RETENTION_DAYS: garbage collection tuning
    LOG_LEVEL: logging level (default INFO)
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import functions_framework
from cloudevents.http import CloudEvent

# Add project root to Python path when deployed from the repository root
project_root = Path(__file__).resolve().parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from src.core.quota.resources import ResourceKind
from src.core.quota.service import get_quota_enforcer, get_shadow_counters
from src.db.event_data import EventDocument, parse_document_event
from src.maintenance.service import get_maintenance_service
from src.utils.async_utils import run_async

logging.basicConfig(
    level=getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _event_payload(cloud_event: CloudEvent) -> Dict[str, Any]:
    data = cloud_event.data
    if isinstance(data, (bytes, bytearray)):
        data = data.decode("utf-8")
    if isinstance(data, str):
        data = json.loads(data)
    return data or {}


def _resource_document(
    cloud_event: CloudEvent,
    deleted: bool = False,
) -> Optional[Tuple[ResourceKind, EventDocument]]:
    """Decode the event's document and map its collection to a resource kind."""
    change = parse_document_event(_event_payload(cloud_event))
    document = change.old_value if deleted else change.value
    if document is None:
        logger.warning(f"Event {cloud_event['id']} carries no document, skipping")
        return None

    try:
        kind = ResourceKind.from_collection(document.collection)
    except ValueError as e:
        logger.warning(f"Event {cloud_event['id']}: {e}")
        return None
    return kind, document


@functions_framework.cloud_event
def validate_creation(cloud_event: CloudEvent) -> None:
    """
    Check a newly created resource against its owner's plan.

    Resources over the limit are deleted and QuotaExceededError is raised so
    the failure is visible in the function's error reporting.
    """
    resolved = _resource_document(cloud_event)
    if resolved is None:
        return
    kind, document = resolved

    outcome = run_async(get_quota_enforcer().validate_creation(kind, document.id, document.data))
    logger.info(f"{kind.value} {document.id}: {outcome.state.value}")


@functions_framework.cloud_event
def increment_usage_counter(cloud_event: CloudEvent) -> None:
    """Add one to the owner's usage counter for the created resource."""
    resolved = _resource_document(cloud_event)
    if resolved is None:
        return
    kind, document = resolved
    run_async(get_shadow_counters().on_created(
        kind, document.data, cloud_event["id"], resource_id=document.id
    ))


@functions_framework.cloud_event
def decrement_usage_counter(cloud_event: CloudEvent) -> None:
    """Subtract one from the owner's usage counter for the deleted resource."""
    resolved = _resource_document(cloud_event, deleted=True)
    if resolved is None:
        return
    kind, document = resolved
    run_async(get_shadow_counters().on_deleted(
        kind, document.data, cloud_event["id"], resource_id=document.id
    ))


@functions_framework.cloud_event
def cleanup_old_emails(cloud_event: CloudEvent) -> None:
    """Scheduled: delete processed emails past retention."""
    run_async(get_maintenance_service().cleanup_old_emails())


@functions_framework.cloud_event
def cleanup_expired_codes(cloud_event: CloudEvent) -> None:
    """Scheduled: delete expired signup and password-reset codes."""
    run_async(get_maintenance_service().cleanup_expired_codes())


@functions_framework.cloud_event
def cleanup_failed_emails(cloud_event: CloudEvent) -> None:
    """Scheduled: delete permanently failed emails past retention."""
    run_async(get_maintenance_service().cleanup_failed_emails())
