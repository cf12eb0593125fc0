"""
Firestore-backed document store.

The Firestore client is created once per process by the caller (or by
``FirestoreDocumentStore.from_credentials``) and injected into the store;
nothing here relies on the SDK's default app.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

import firebase_admin
from firebase_admin import credentials, firestore

from crm_reconcile.utils.logging import get_logger

logger = get_logger(__name__)


class FirestoreWriteBatch:
    """Thin wrapper over a Firestore WriteBatch that tracks its size."""

    def __init__(self, client: Any) -> None:
        self._client = client
        self._batch = client.batch()
        self._size = 0

    def set(
        self,
        collection: str,
        key: str,
        data: Mapping[str, Any],
        merge: bool = True,
    ) -> None:
        ref = self._client.collection(collection).document(key)
        self._batch.set(ref, dict(data), merge=merge)
        self._size += 1

    def commit(self) -> None:
        self._batch.commit()

    def __len__(self) -> int:
        return self._size


class FirestoreDocumentStore:
    """
    DocumentStore over a google-cloud-firestore client.

    Usage:
        store = FirestoreDocumentStore.from_credentials("service-account.json")
        for key, data in store.stream("fishbowl_customers"):
            ...
    """

    def __init__(self, client: Any) -> None:
        self.client = client

    @classmethod
    def from_credentials(
        cls,
        credentials_path: Optional[str] = None,
        project_id: Optional[str] = None,
        app_name: str = "crm-reconcile",
    ) -> "FirestoreDocumentStore":
        """
        Build a store owning a named firebase_admin app.

        Args:
            credentials_path: Service account JSON. Application default
                credentials are used when omitted.
            project_id: Optional project id override.
            app_name: Name of the firebase_admin app; reused if it exists.
        """
        try:
            app = firebase_admin.get_app(app_name)
        except ValueError:
            cred = (
                credentials.Certificate(credentials_path)
                if credentials_path
                else credentials.ApplicationDefault()
            )
            options = {"projectId": project_id} if project_id else None
            app = firebase_admin.initialize_app(cred, options, name=app_name)
            logger.info(
                "firestore_store.app_initialized",
                app_name=app_name,
                project_id=project_id,
                uses_default_credentials=credentials_path is None,
            )
        return cls(firestore.client(app=app))

    def stream(self, collection: str) -> Iterator[Tuple[str, Dict[str, Any]]]:
        for snapshot in self.client.collection(collection).stream():
            yield snapshot.id, snapshot.to_dict() or {}

    def batch(self) -> FirestoreWriteBatch:
        return FirestoreWriteBatch(self.client)
