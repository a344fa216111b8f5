"""Utility modules for the props integrity service."""

from .storage_paths import (
    StorageReference,
    is_gcs_path,
    parse_gcs_uri,
    build_gcs_uri,
    parse_storage_reference,
    extract_storage_references,
)
from .timer_utils import elapsed_ms, Timer
from .async_utils import run_async, gather_bounded
from .env_utils import parse_bool_env, parse_int_env

__all__ = [
    # Storage reference utilities
    "StorageReference",
    "is_gcs_path",
    "parse_gcs_uri",
    "build_gcs_uri",
    "parse_storage_reference",
    "extract_storage_references",
    # Timer utilities
    "elapsed_ms",
    "Timer",
    # Async utilities
    "run_async",
    "gather_bounded",
    # Environment utilities
    "parse_bool_env",
    "parse_int_env",
]
