"""Unit tests for RecordLoader and document parsing."""

from unittest.mock import MagicMock

import pytest

from crm_reconcile.domain.reconciliation.exceptions import (
    LoadFailure,
    MalformedRecordError,
)
from crm_reconcile.infrastructure.reconciliation.types import RecordSchema
from crm_reconcile.io.loader import (
    RecordLoader,
    parse_source_document,
    parse_target_document,
)
from crm_reconcile.io.store.memory import InMemoryDocumentStore


@pytest.mark.unit
class TestParseDocuments:
    def test_source_fields_from_aliases(self):
        record = parse_source_document(
            "S1",
            {
                "name": " Acme ",
                "accountId": " C104 ",
                "accountNumber": 72189386.0,
                "street": "123 Main Street",
                "unrelated": "ignored",
            },
            RecordSchema(),
        )

        assert record.source_id == "S1"
        assert record.display_name == "Acme"
        assert record.identifier_a == "C104"
        assert record.identifier_b == "72189386"
        assert record.address_line == "123 Main Street"

    def test_first_non_empty_alias_wins(self):
        record = parse_source_document(
            "S1", {"address": "  ", "street": "9 Long Road"}, RecordSchema()
        )

        assert record.address_line == "9 Long Road"

    def test_target_id_from_body_not_key(self):
        record = parse_target_document(
            "doc-1",
            {"id": "T9", "Name": "Acme Co", "Account ID": "C104"},
            RecordSchema(),
        )

        assert record.target_id == "T9"
        assert record.store_key == "doc-1"
        assert record.identifier_a == "C104"

    def test_target_without_id_is_malformed(self):
        with pytest.raises(MalformedRecordError) as exc_info:
            parse_target_document("doc-1", {"Name": "No Id"}, RecordSchema())

        assert exc_info.value.store_key == "doc-1"

    @pytest.mark.parametrize("data", [None, "text", ["a"]])
    def test_non_mapping_body_is_malformed(self, data):
        with pytest.raises(MalformedRecordError):
            parse_source_document("S1", data, RecordSchema())

    def test_empty_source_key_is_malformed(self):
        with pytest.raises(MalformedRecordError):
            parse_source_document("  ", {"name": "x"}, RecordSchema())

    def test_source_key_with_surrounding_spaces_kept(self):
        record = parse_source_document(" S1 ", {"accountId": "C1"}, RecordSchema())

        assert record.source_id == " S1 "

    def test_custom_schema(self):
        schema = RecordSchema.from_mapping(source={"identifier_a": ["acct"]})
        record = parse_source_document(
            "S1", {"acct": "C1", "accountId": "C2"}, schema
        )

        assert record.identifier_a == "C1"


@pytest.mark.unit
class TestRecordLoader:
    def test_loads_both_collections(self, store):
        snapshot = RecordLoader(store).load()

        assert [s.source_id for s in snapshot.sources] == ["S1", "S2", "S3", "S4"]
        assert [t.target_id for t in snapshot.targets] == ["T-A", "T-B", "T-C", "T-D"]
        assert snapshot.skipped_sources == 0
        assert snapshot.skipped_targets == 0

    def test_malformed_documents_skipped_and_counted(self):
        store = InMemoryDocumentStore(
            {
                "fishbowl_customers": {"S1": {"name": "ok"}, "S2": "not a dict"},
                "copper_companies": {
                    "a": {"id": "T1"},
                    "b": {"Name": "missing id"},
                    "c": {"id": "   "},
                },
            }
        )

        snapshot = RecordLoader(store).load()

        assert [s.source_id for s in snapshot.sources] == ["S1"]
        assert [t.target_id for t in snapshot.targets] == ["T1"]
        assert snapshot.skipped_sources == 1
        assert snapshot.skipped_targets == 2

    def test_only_unlinked_filters_linked_sources(self):
        store = InMemoryDocumentStore(
            {
                "fishbowl_customers": {
                    "S1": {"name": "linked", "copperCompanyId": "T1"},
                    "S2": {"name": "fresh"},
                },
                "copper_companies": {},
            }
        )

        all_sources = RecordLoader(store).load().sources
        unlinked = RecordLoader(store).load(only_unlinked=True).sources

        assert [s.source_id for s in all_sources] == ["S1", "S2"]
        assert [s.source_id for s in unlinked] == ["S2"]

    def test_custom_collection_names(self):
        store = InMemoryDocumentStore(
            {"erp": {"S1": {"accountId": "C1"}}, "crm": {"x": {"id": "T1"}}}
        )

        snapshot = RecordLoader(
            store, source_collection="erp", target_collection="crm"
        ).load()

        assert len(snapshot.sources) == 1
        assert len(snapshot.targets) == 1

    def test_missing_collection_loads_empty(self):
        snapshot = RecordLoader(InMemoryDocumentStore()).load()

        assert snapshot.sources == []
        assert snapshot.targets == []

    def test_read_failure_raises_load_failure(self):
        store = MagicMock()
        store.stream.side_effect = ConnectionError("deadline exceeded")

        with pytest.raises(LoadFailure) as exc_info:
            RecordLoader(store).load()

        assert exc_info.value.collection == "fishbowl_customers"
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_failure_mid_stream_returns_no_partial_snapshot(self):
        def _stream(collection):
            if collection == "copper_companies":
                yield "a", {"id": "T1"}
                raise TimeoutError("read timed out")
            yield "S1", {"name": "ok"}

        store = MagicMock()
        store.stream.side_effect = _stream

        with pytest.raises(LoadFailure) as exc_info:
            RecordLoader(store).load()

        assert exc_info.value.collection == "copper_companies"
        assert "read timed out" in str(exc_info.value)
