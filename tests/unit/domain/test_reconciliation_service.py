"""Unit tests for ReconciliationService over the in-memory store."""

from unittest.mock import MagicMock

import pytest

from crm_reconcile.domain.reconciliation.exceptions import LoadFailure
from crm_reconcile.domain.reconciliation.service import ReconciliationService
from crm_reconcile.infrastructure.reconciliation.types import LinkFields, RecordSchema


@pytest.mark.unit
class TestReconciliationService:
    def test_match_end_to_end(self, store, settings):
        report = ReconciliationService(store, settings=settings).match()

        by_source = {m.source_id: m for m in report.matches}
        assert by_source["S1"].target_id == "T-A"
        assert by_source["S1"].match_type.value == "identifierA"
        assert by_source["S2"].target_id == "T-B"
        assert by_source["S2"].match_type.value == "identifierB"
        assert by_source["S3"].target_id == "T-C"
        assert by_source["S3"].match_type.value == "address"
        assert report.unmatched_source_ids == ["S4"]
        assert report.stats.total_source == 4
        assert report.stats.total_target == 4

    def test_loader_skips_folded_into_stats(self, store, settings):
        batch = store.batch()
        batch.set("copper_companies", "broken", {"Name": "no id"})
        batch.commit()

        report = ReconciliationService(store, settings=settings).match()

        assert report.stats.skipped_targets == 1
        assert report.stats.total_target == 4

    def test_run_with_apply_links_sources(self, store, settings):
        service = ReconciliationService(store, settings=settings)

        run = service.run(apply=True)

        assert run.apply_result.updated == 3
        assert store.get("fishbowl_customers", "S1")["copperCompanyId"] == "T-A"
        assert store.get("fishbowl_customers", "S3")["matchType"] == "address"
        assert "copperCompanyId" not in store.get("fishbowl_customers", "S4")

    def test_second_run_only_unlinked_sees_leftovers(self, store, settings):
        service = ReconciliationService(store, settings=settings)
        service.run(apply=True)

        report = service.match(only_unlinked=True)

        assert report.stats.total_source == 1
        assert report.matches == []

    def test_run_dry_run_does_not_write(self, store, settings):
        run = ReconciliationService(store, settings=settings).run(dry_run=True)

        assert run.apply_result.dry_run is True
        assert run.apply_result.total_requested == 3
        assert "copperCompanyId" not in store.get("fishbowl_customers", "S1")

    def test_run_without_apply(self, store, settings):
        run = ReconciliationService(store, settings=settings).run()

        assert run.apply_result is None
        assert run.duration_ms >= 0

    def test_apply_reviewed_subset(self, store, settings):
        service = ReconciliationService(store, settings=settings)
        report = service.match()
        reviewed = [m.to_contract() for m in report.matches if m.source_id != "S2"]

        result = service.apply(reviewed)

        assert result.updated == 2
        assert "copperCompanyId" not in store.get("fishbowl_customers", "S2")

    def test_exclusive_targets_from_settings(self, store, settings):
        batch = store.batch()
        batch.set("fishbowl_customers", "S5", {"accountId": "C104"})
        batch.commit()

        shared = ReconciliationService(store, settings=settings).match()
        exclusive = ReconciliationService(
            store, settings=settings.model_copy(update={"exclusive_targets": True})
        ).match()

        assert shared.stats.matched_count == 4
        assert exclusive.stats.matched_count == 3
        assert exclusive.stats.claim_conflicts == 1

    def test_explicit_schema_and_link_fields(self, settings):
        from crm_reconcile.io.store.memory import InMemoryDocumentStore

        store = InMemoryDocumentStore(
            {
                "fishbowl_customers": {"S1": {"acct": "C1"}},
                "copper_companies": {"x": {"id": "T1", "Account ID": "C1"}},
            }
        )
        service = ReconciliationService(
            store,
            settings=settings,
            schema=RecordSchema.from_mapping(source={"identifier_a": ["acct"]}),
            link_fields=LinkFields(linked_target_id="crmId"),
        )

        service.run(apply=True)

        assert store.get("fishbowl_customers", "S1")["crmId"] == "T1"

    def test_apply_writes_under_untrimmed_source_key(self, settings):
        from crm_reconcile.io.store.memory import InMemoryDocumentStore

        store = InMemoryDocumentStore(
            {
                "fishbowl_customers": {" S1": {"accountId": "C1"}},
                "copper_companies": {"x": {"id": "T1", "Account ID": "C1"}},
            }
        )

        run = ReconciliationService(store, settings=settings).run(apply=True)

        assert run.apply_result.updated == 1
        assert [key for key, _ in store.stream("fishbowl_customers")] == [" S1"]
        assert store.get("fishbowl_customers", " S1")["copperCompanyId"] == "T1"

    def test_load_failure_propagates(self, settings):
        store = MagicMock()
        store.stream.side_effect = OSError("unreachable")

        with pytest.raises(LoadFailure):
            ReconciliationService(store, settings=settings).match()
        store.batch.assert_not_called()
