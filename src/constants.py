"""Application-wide constants and configuration defaults.

This module centralizes magic values, collection names and validation bounds
that are used across the codebase to improve maintainability.
"""

# =============================================================================
# Document Store Limits
# =============================================================================
# Hard ceiling of writes allowed inside one atomic batch commit
STORE_MAX_BATCH_WRITES = 500
# Maximum number of values accepted by an `in` filter
STORE_MAX_IN_VALUES = 30

# =============================================================================
# Collections
# =============================================================================
COLLECTION_USER_PROFILES = "userProfiles"
COLLECTION_SHOWS = "shows"
COLLECTION_BOARDS = "todo_boards"
COLLECTION_PACKING_BOXES = "packingBoxes"
COLLECTION_PROPS = "props"
COLLECTION_INVITATIONS = "invitations"
COLLECTION_FEEDBACK = "feedback"
COLLECTION_EMAILS = "emails"
COLLECTION_PENDING_SIGNUPS = "pending_signups"
COLLECTION_PENDING_PASSWORD_RESETS = "pending_password_resets"
COLLECTION_COUNTER_EVENTS = "counterEvents"
COLLECTION_COUNTER_OWNERS = "counterOwners"

# Shadow counter collections (document id = tenant id)
COLLECTION_SHOW_COUNTS = "userShowCounts"
COLLECTION_BOARD_COUNTS = "userBoardCounts"
COLLECTION_PROP_COUNTS = "userPropCounts"
COLLECTION_PACKING_BOX_COUNTS = "userPackingBoxCounts"

# Collections whose documents may embed object-store references
STORAGE_REFERENCE_COLLECTIONS = (
    COLLECTION_USER_PROFILES,
    COLLECTION_SHOWS,
    COLLECTION_PROPS,
    COLLECTION_BOARDS,
    COLLECTION_FEEDBACK,
)

# =============================================================================
# Owner Resolution
# =============================================================================
# First non-empty field wins
OWNER_FIELD_PRECEDENCE = ("createdBy", "ownerId", "userId")
PARENT_SHOW_FIELD = "showId"

# =============================================================================
# Admin Predicate
# =============================================================================
ADMIN_GROUP = "system-admin"
ADMIN_ROLE = "god"

# =============================================================================
# Garbage Collection Defaults
# =============================================================================
DEFAULT_CLEANUP_PAGE_SIZE = 500
DEFAULT_MAX_BATCH_OPERATIONS = 450
DEFAULT_EMAIL_RETENTION_DAYS = 30
DEFAULT_FAILED_EMAIL_RETENTION_DAYS = 7
DEFAULT_HEALTH_RECOMMENDATION_THRESHOLD = 100
COUNTER_EVENT_TTL_DAYS = 7

# =============================================================================
# Validation Bounds
# =============================================================================
MIN_DAYS_OLD = 1
MAX_DAYS_OLD = 365
MIN_MAX_FILES = 1
MAX_MAX_FILES = 10000
MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 50

DEFAULT_MAX_FILES = 1000
DEFAULT_CONCURRENCY = 10

# =============================================================================
# Usage Warnings
# =============================================================================
ALMOST_OUT_PERCENT = 80

# =============================================================================
# Object Store URL Forms
# =============================================================================
GCS_URI_PREFIX = "gs://"
GCS_URI_PREFIX_LEN = len(GCS_URI_PREFIX)
FIREBASE_STORAGE_HOST = "firebasestorage.googleapis.com"
GCS_PUBLIC_HOST = "storage.googleapis.com"
