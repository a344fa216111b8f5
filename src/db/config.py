"""Document store configuration and factory."""

import os
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .base import DocumentStore

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("firestore", "memory")


class DocumentStoreConfig(BaseModel):
    """Document store configuration from environment variables."""

    backend: str = Field(
        default_factory=lambda: os.getenv("DOCUMENT_STORE_BACKEND", "firestore"),
        description="Backend implementation: firestore or memory",
    )

    project: Optional[str] = Field(
        default_factory=lambda: os.getenv("FIRESTORE_PROJECT") or None,
        description="GCP project id (unset to use Application Default Credentials)",
    )

    database: str = Field(
        default_factory=lambda: os.getenv("FIRESTORE_DATABASE", "(default)"),
        description="Firestore database id",
    )

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"DOCUMENT_STORE_BACKEND must be one of {', '.join(SUPPORTED_BACKENDS)}"
            )
        return v


# Global store instance (singleton)
_store: Optional[DocumentStore] = None
_config: Optional[DocumentStoreConfig] = None


def get_document_store() -> DocumentStore:
    """
    Get or create the document store singleton.

    Returns:
        DocumentStore: Configured Firestore or in-memory store
    """
    global _store, _config

    if _store is None:
        _config = DocumentStoreConfig()

        if _config.backend == "memory":
            from .memory import MemoryDocumentStore

            _store = MemoryDocumentStore()
            logger.warning("Document store initialized with in-memory backend")
        else:
            from .firestore import FirestoreDocumentStore

            _store = FirestoreDocumentStore(
                project=_config.project,
                database=_config.database,
            )
            logger.info(
                f"Document store initialized: firestore "
                f"(project={_config.project or 'default'}, database={_config.database})"
            )

    return _store


def get_document_store_config() -> DocumentStoreConfig:
    """Get document store configuration."""
    global _config
    if _config is None:
        _config = DocumentStoreConfig()
    return _config


def reset_document_store() -> None:
    """Reset document store singleton (for testing)."""
    global _store, _config
    _store = None
    _config = None
