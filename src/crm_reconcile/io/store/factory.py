"""DocumentStore factory - builds the configured backend once per process."""

from __future__ import annotations

from typing import TYPE_CHECKING

from crm_reconcile.utils.logging import get_logger

if TYPE_CHECKING:
    from crm_reconcile.config.settings import Settings

    from .base import DocumentStore

logger = get_logger(__name__)


def create_document_store(settings: "Settings") -> "DocumentStore":
    """
    Create the store selected by settings.store_backend.

    Backend SDKs are imported lazily so the memory and sql backends work
    without Firebase credentials on the machine.

    Raises:
        ValueError: If the backend name is unknown.
    """
    backend = settings.store_backend

    if backend == "firestore":
        from .firestore_store import FirestoreDocumentStore

        store: "DocumentStore" = FirestoreDocumentStore.from_credentials(
            credentials_path=settings.firebase_credentials_path,
            project_id=settings.firebase_project_id,
            app_name=settings.firebase_app_name,
        )
    elif backend == "sql":
        from .sql_store import SqlDocumentStore

        sql_store = SqlDocumentStore.from_url(settings.database_url or "")
        sql_store.create_schema()
        store = sql_store
    elif backend == "memory":
        from .memory import InMemoryDocumentStore

        store = InMemoryDocumentStore()
    else:
        raise ValueError(f"Unknown store backend: {backend!r}")

    logger.info("store_factory.store_created", backend=backend)
    return store
