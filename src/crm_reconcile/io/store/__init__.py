"""Document store backends (in-memory, Firestore, SQLAlchemy)."""

from .base import DocumentStore, WriteBatch
from .factory import create_document_store
from .memory import InMemoryDocumentStore

__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "WriteBatch",
    "create_document_store",
]
