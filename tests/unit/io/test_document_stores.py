"""Unit tests for the in-memory and Firestore document stores."""

from unittest.mock import MagicMock, patch

import pytest

from crm_reconcile.io.store import create_document_store
from crm_reconcile.io.store.firestore_store import FirestoreDocumentStore
from crm_reconcile.io.store.memory import InMemoryDocumentStore


@pytest.mark.unit
class TestInMemoryDocumentStore:
    def test_stream_returns_copies(self):
        store = InMemoryDocumentStore({"c": {"k": {"name": "Acme"}}})

        [(key, data)] = list(store.stream("c"))
        data["name"] = "changed"

        assert key == "k"
        assert store.get("c", "k") == {"name": "Acme"}

    def test_writes_apply_only_on_commit(self):
        store = InMemoryDocumentStore({"c": {"k": {"name": "Acme"}}})
        batch = store.batch()
        batch.set("c", "k", {"linked": "T1"})

        assert len(batch) == 1
        assert "linked" not in store.get("c", "k")

        batch.commit()
        assert store.get("c", "k") == {"name": "Acme", "linked": "T1"}
        assert store.commit_count == 1

    def test_set_without_merge_replaces(self):
        store = InMemoryDocumentStore({"c": {"k": {"name": "Acme"}}})
        batch = store.batch()
        batch.set("c", "k", {"linked": "T1"}, merge=False)
        batch.commit()

        assert store.get("c", "k") == {"linked": "T1"}


@pytest.mark.unit
class TestFirestoreDocumentStore:
    def test_stream_yields_id_and_data(self):
        client = MagicMock()
        doc = MagicMock(id="S1")
        doc.to_dict.return_value = {"name": "Acme"}
        empty = MagicMock(id="S2")
        empty.to_dict.return_value = None
        client.collection.return_value.stream.return_value = [doc, empty]

        rows = list(FirestoreDocumentStore(client).stream("fishbowl_customers"))

        client.collection.assert_called_with("fishbowl_customers")
        assert rows == [("S1", {"name": "Acme"}), ("S2", {})]

    def test_batch_sets_with_merge_and_commits(self):
        client = MagicMock()
        store = FirestoreDocumentStore(client)

        batch = store.batch()
        batch.set("fishbowl_customers", "S1", {"copperCompanyId": "T1"})
        batch.commit()

        ref = client.collection.return_value.document.return_value
        client.collection.return_value.document.assert_called_with("S1")
        client.batch.return_value.set.assert_called_once_with(
            ref, {"copperCompanyId": "T1"}, merge=True
        )
        client.batch.return_value.commit.assert_called_once()
        assert len(batch) == 1

    def test_from_credentials_reuses_named_app(self):
        app = MagicMock()
        with patch(
            "crm_reconcile.io.store.firestore_store.firebase_admin"
        ) as admin, patch(
            "crm_reconcile.io.store.firestore_store.firestore"
        ) as firestore:
            admin.get_app.return_value = app
            store = FirestoreDocumentStore.from_credentials(app_name="reconcile-test")

        admin.get_app.assert_called_once_with("reconcile-test")
        admin.initialize_app.assert_not_called()
        firestore.client.assert_called_once_with(app=app)
        assert store.client is firestore.client.return_value

    def test_from_credentials_initializes_named_app(self):
        with patch(
            "crm_reconcile.io.store.firestore_store.firebase_admin"
        ) as admin, patch(
            "crm_reconcile.io.store.firestore_store.firestore"
        ), patch(
            "crm_reconcile.io.store.firestore_store.credentials"
        ) as creds:
            admin.get_app.side_effect = ValueError("no app")
            FirestoreDocumentStore.from_credentials(
                credentials_path="sa.json", project_id="demo", app_name="reconcile-test"
            )

        creds.Certificate.assert_called_once_with("sa.json")
        admin.initialize_app.assert_called_once_with(
            creds.Certificate.return_value, {"projectId": "demo"}, name="reconcile-test"
        )


@pytest.mark.unit
class TestCreateDocumentStore:
    def test_memory_backend(self, settings):
        assert isinstance(create_document_store(settings), InMemoryDocumentStore)

    def test_firestore_backend_uses_settings(self, settings):
        settings = settings.model_copy(
            update={
                "store_backend": "firestore",
                "firebase_credentials_path": "sa.json",
                "firebase_app_name": "named",
            }
        )
        with patch.object(FirestoreDocumentStore, "from_credentials") as factory:
            create_document_store(settings)

        factory.assert_called_once_with(
            credentials_path="sa.json", project_id=None, app_name="named"
        )
