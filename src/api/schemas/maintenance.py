"""
Request models for the maintenance endpoints.

Fields are typed Any: the maintenance service owns the
bound checks and their error messages, so a `"daysOld": "abc"` body reaches
it unchanged and fails with the same message as any other caller.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.constants import DEFAULT_CONCURRENCY, DEFAULT_MAX_FILES


class CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ManualCleanupRequest(CamelRequest):
    collection: Any = Field(None, example="emails")
    days_old: Any = Field(30, example=30)
    dry_run: Any = Field(True, example=True)


class StorageCleanupRequest(CamelRequest):
    dry_run: Any = Field(True, example=True)
    max_files: Any = Field(DEFAULT_MAX_FILES, example=1000)
    concurrency: Any = Field(DEFAULT_CONCURRENCY, example=10)
