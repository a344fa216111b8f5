"""
Document store package.

Provides:
- Abstract DocumentStore / WriteBatch interface
- Firestore backend (google-cloud-firestore AsyncClient)
- In-memory backend for local runs and tests
- Configuration-driven singleton factory
"""

from .base import Condition, DocumentStore, StoredDocument, WriteBatch, get_field
from .config import (
    DocumentStoreConfig,
    get_document_store,
    get_document_store_config,
    reset_document_store,
)
from .memory import MemoryDocumentStore

__all__ = [
    "Condition",
    "DocumentStore",
    "StoredDocument",
    "WriteBatch",
    "get_field",
    "DocumentStoreConfig",
    "get_document_store",
    "get_document_store_config",
    "reset_document_store",
    "MemoryDocumentStore",
]
