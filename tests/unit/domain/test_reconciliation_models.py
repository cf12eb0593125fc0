"""Unit tests for reconciliation data models."""

import pytest
from pydantic import ValidationError

from crm_reconcile.domain.reconciliation.models import (
    ApplyResult,
    MatchReport,
    MatchResult,
    MatchStatistics,
    RunReport,
    SourceRecord,
    TargetRecord,
    clean_identifier,
)
from crm_reconcile.infrastructure.reconciliation.types import Confidence, MatchType


@pytest.mark.unit
class TestCleanIdentifier:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("  C104 ", "C104"),
            ("", None),
            ("   ", None),
            (None, None),
            (True, None),
            (72189386.0, "72189386"),
            (12.5, "12.5"),
            (55102, "55102"),
        ],
    )
    def test_values(self, value, expected):
        assert clean_identifier(value) == expected


@pytest.mark.unit
class TestRecords:
    def test_source_identifiers_cleaned(self):
        record = SourceRecord(source_id="S1", identifier_a="", identifier_b=" 7 ")

        assert record.source_id == "S1"
        assert record.identifier_a is None
        assert record.identifier_b == "7"

    def test_source_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            SourceRecord(source_id="S1", favourite_color="blue")

    def test_source_requires_id(self):
        with pytest.raises(ValidationError):
            SourceRecord(source_id="   ")

    def test_source_key_kept_verbatim(self):
        record = SourceRecord(source_id=" S1 ")

        assert record.source_id == " S1 "

    def test_records_are_frozen(self):
        record = TargetRecord(target_id="T1")

        with pytest.raises(ValidationError):
            record.target_id = "T2"

    def test_target_text_fields_stringified(self):
        record = TargetRecord(target_id=9, display_name=" Acme ", address_line=12)

        assert record.target_id == "9"
        assert record.display_name == "Acme"
        assert record.address_line == "12"


@pytest.mark.unit
class TestMatchResult:
    def test_camel_case_round_trip(self):
        payload = {
            "sourceId": "S1",
            "targetId": "T1",
            "matchType": "address",
            "confidence": "medium",
        }

        result = MatchResult.model_validate(payload)

        assert result.match_type is MatchType.ADDRESS
        assert result.confidence is Confidence.MEDIUM
        assert result.to_contract() == {
            "sourceId": "S1",
            "sourceDisplayName": "",
            "targetId": "T1",
            "targetDisplayName": "",
            "matchType": "address",
            "confidence": "medium",
        }

    def test_unknown_match_type_rejected(self):
        with pytest.raises(ValidationError):
            MatchResult.model_validate(
                {"sourceId": "S1", "targetId": "T1", "matchType": "x", "confidence": "high"}
            )

    def test_null_display_names_become_empty(self):
        result = MatchResult.model_validate(
            {
                "sourceId": "S1",
                "sourceDisplayName": None,
                "targetId": "T1",
                "matchType": "identifierA",
                "confidence": "high",
            }
        )

        assert result.source_display_name == ""

    def test_source_id_not_trimmed(self):
        result = MatchResult.model_validate(
            {
                "sourceId": " S1",
                "targetId": " T1 ",
                "matchType": " address ",
                "confidence": "medium",
            }
        )

        assert result.source_id == " S1"
        assert result.target_id == "T1"
        assert result.match_type is MatchType.ADDRESS

    def test_blank_source_id_rejected(self):
        with pytest.raises(ValidationError):
            MatchResult.model_validate(
                {
                    "sourceId": "  ",
                    "targetId": "T1",
                    "matchType": "address",
                    "confidence": "medium",
                }
            )


@pytest.mark.unit
class TestResultContainers:
    def test_statistics_to_dict(self):
        stats = MatchStatistics(
            total_source=3,
            total_target=4,
            matched_count=2,
            unmatched_count=1,
            matches_by_type={"identifierA": 2},
        )

        payload = stats.to_dict()

        assert payload["totalSource"] == 3
        assert payload["totalTarget"] == 4
        assert payload["matchedCount"] == 2
        assert payload["unmatchedCount"] == 1
        assert payload["matchesByType"] == {"identifierA": 2}

    def test_run_report_includes_apply(self):
        run = RunReport(
            report=MatchReport(),
            apply_result=ApplyResult(updated=5, total_requested=5, batches_committed=1),
            duration_ms=12.345,
        )

        payload = run.to_dict()

        assert payload["apply"] == {
            "updated": 5,
            "total": 5,
            "batchesCommitted": 1,
            "dryRun": False,
        }
        assert payload["durationMs"] == 12.3
        assert payload["matches"] == []

    def test_run_report_without_apply(self):
        assert "apply" not in RunReport(report=MatchReport()).to_dict()
