"""
Retention predicates for garbage collection.

Only collections listed in CLEANUP_POLICIES may be targeted by manual cleanup.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from src.constants import (
    COLLECTION_EMAILS,
    COLLECTION_PENDING_PASSWORD_RESETS,
    COLLECTION_PENDING_SIGNUPS,
)
from src.db.base import Condition


class DateEncoding(str, Enum):
    """How a collection stores its date field."""
    TIMESTAMP = "timestamp"  # native timestamp
    EPOCH_MS = "epoch_ms"    # integer milliseconds since the epoch


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def encode_cutoff(moment: datetime, encoding: DateEncoding) -> Any:
    if encoding == DateEncoding.EPOCH_MS:
        return to_epoch_ms(moment)
    return moment


@dataclass(frozen=True)
class CleanupPolicy:
    """
    Retention rule of one collection: documents whose `date_field` is older
    than a cutoff (and that match every extra condition) may be deleted.
    """
    collection: str
    date_field: str
    date_encoding: DateEncoding = DateEncoding.TIMESTAMP
    extra_conditions: Tuple[Condition, ...] = ()

    def conditions_before(self, cutoff: datetime) -> List[Condition]:
        return [
            *self.extra_conditions,
            Condition(self.date_field, "<", encode_cutoff(cutoff, self.date_encoding)),
        ]

    def conditions_older_than(self, days: int, now: Optional[datetime] = None) -> List[Condition]:
        """Conditions matching documents older than `days` days."""
        return self.conditions_before((now or utc_now()) - timedelta(days=days))


# Processed emails: done and old
PROCESSED_EMAILS = CleanupPolicy(
    collection=COLLECTION_EMAILS,
    date_field="processingAt",
    extra_conditions=(Condition("processed", "==", True),),
)

# Delivery permanently failed
FAILED_EMAILS = CleanupPolicy(
    collection=COLLECTION_EMAILS,
    date_field="delivery.failedAt",
    extra_conditions=(Condition("delivery.state", "==", "failed"),),
)

PENDING_SIGNUPS = CleanupPolicy(
    collection=COLLECTION_PENDING_SIGNUPS,
    date_field="expiresAt",
    date_encoding=DateEncoding.EPOCH_MS,
)

PENDING_PASSWORD_RESETS = CleanupPolicy(
    collection=COLLECTION_PENDING_PASSWORD_RESETS,
    date_field="expiresAt",
    date_encoding=DateEncoding.EPOCH_MS,
)

# Allow-list for manual cleanup
CLEANUP_POLICIES: Dict[str, CleanupPolicy] = {
    COLLECTION_EMAILS: PROCESSED_EMAILS,
    COLLECTION_PENDING_SIGNUPS: PENDING_SIGNUPS,
    COLLECTION_PENDING_PASSWORD_RESETS: PENDING_PASSWORD_RESETS,
}
