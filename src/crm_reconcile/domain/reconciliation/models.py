"""
Pydantic v2 data models for ERP → CRM reconciliation.

This module defines the data contracts for:
1. Source (Fishbowl customer) and target (Copper company) records
2. Match results exchanged with the manual-review step
3. Run statistics and the load / apply / run result containers

Documents are loosely typed in the store; the Loader extracts only the fields
named by the RecordSchema and validates them through these models, so
identifier values are always trimmed strings or None. Source ids are the
exception: they are store keys and are kept exactly as stored, since the
Applier writes back under the same key.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from crm_reconcile.infrastructure.reconciliation.types import Confidence, MatchType


def clean_identifier(value: Any) -> Optional[str]:
    """
    Coerce a document value into a trimmed identifier string.

    Empty and whitespace-only values mean "no value" and become None, so they
    can never act as lookup keys. Integral floats (spreadsheet imports) lose
    their trailing ".0". No case folding.

    Examples:
        >>> clean_identifier("  C104 ")
        'C104'
        >>> clean_identifier(72189386.0)
        '72189386'
        >>> clean_identifier("   ") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    cleaned = str(value).strip()
    return cleaned if cleaned else None


def keep_source_key(value: Any) -> Any:
    """
    Validate a source id without altering it.

    Blank keys are rejected; surrounding whitespace is part of the key and is
    preserved so links land on the document they were read from.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str) and not value.strip():
        raise ValueError("source id must not be blank")
    return value


class SourceRecord(BaseModel):
    """One ERP customer, keyed by its document key in the source collection."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    source_id: str = Field(..., min_length=1, description="Stable source-system id")
    display_name: str = Field(default="", description="Customer name")
    identifier_a: Optional[str] = Field(
        default=None, description="Business account code, e.g. 'C104'"
    )
    identifier_b: Optional[str] = Field(
        default=None, description="Secondary numeric-ish account identifier"
    )
    address_line: Optional[str] = Field(default=None, description="Street address")
    linked_target_id: Optional[str] = Field(
        default=None, description="Target id set by a previous apply"
    )
    match_type: Optional[str] = None
    match_confidence: Optional[str] = None

    @field_validator("source_id", mode="before")
    @classmethod
    def check_source_key(cls, v: Any) -> Any:
        return keep_source_key(v)

    @field_validator(
        "identifier_a", "identifier_b", "linked_target_id", mode="before"
    )
    @classmethod
    def clean_identifiers(cls, v: Any) -> Optional[str]:
        return clean_identifier(v)

    @field_validator(
        "display_name", "address_line", "match_type", "match_confidence", mode="before"
    )
    @classmethod
    def stringify_text(cls, v: Any) -> Any:
        if v is None:
            return v
        return str(v).strip()


class TargetRecord(BaseModel):
    """
    One CRM company.

    target_id comes from the document body; the store key under which the
    document lives is kept separately and is not guaranteed to be equal.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    target_id: str = Field(..., min_length=1, description="Stable CRM company id")
    store_key: Optional[str] = Field(default=None, description="Document key")
    display_name: str = Field(default="", description="Company name")
    identifier_a: Optional[str] = Field(
        default=None, description="Account code, primary join key"
    )
    identifier_c: Optional[str] = Field(
        default=None, description="Alternate id equivalent to source identifier_b"
    )
    address_line: Optional[str] = Field(default=None, description="Street address")

    @field_validator("target_id", "identifier_a", "identifier_c", mode="before")
    @classmethod
    def clean_identifiers(cls, v: Any) -> Optional[str]:
        return clean_identifier(v)

    @field_validator("display_name", "address_line", mode="before")
    @classmethod
    def stringify_text(cls, v: Any) -> Any:
        if v is None:
            return v
        return str(v).strip()


class MatchResult(BaseModel):
    """
    A proposed link between one source and one target.

    Serialized with camelCase keys for the review UI; accepted back in either
    camelCase or snake_case after human edits.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    source_id: str = Field(..., min_length=1)
    source_display_name: str = ""
    target_id: str = Field(..., min_length=1)
    target_display_name: str = ""
    match_type: MatchType
    confidence: Confidence
    matched_identifier_value: Optional[str] = None

    @field_validator("source_id", mode="before")
    @classmethod
    def check_source_key(cls, v: Any) -> Any:
        return keep_source_key(v)

    @field_validator("target_id", mode="before")
    @classmethod
    def clean_target_id(cls, v: Any) -> Optional[str]:
        return clean_identifier(v)

    @field_validator(
        "match_type", "confidence", "matched_identifier_value", mode="before"
    )
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("source_display_name", "target_display_name", mode="before")
    @classmethod
    def default_names(cls, v: Any) -> str:
        return "" if v is None else str(v)

    def to_contract(self) -> Dict[str, Any]:
        """Dump in the review-UI shape (camelCase, enum values, no nulls)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass
class MatchStatistics:
    """
    Aggregate counts for one matching run.

    Attributes:
        total_source: Source records offered to the matcher.
        total_target: Target records loaded (before index collisions).
        matched_count: Sources that received a match.
        unmatched_count: Sources left without a match.
        matches_by_type: Hits per strategy.
        skipped_sources: Malformed source documents dropped by the Loader.
        skipped_targets: Malformed target documents dropped by the Loader.
        index_collisions: Overwritten keys per index during the build.
        claim_conflicts: Hits discarded because the target was already claimed
            (exclusive_targets mode only).
    """

    total_source: int = 0
    total_target: int = 0
    matched_count: int = 0
    unmatched_count: int = 0
    matches_by_type: Dict[str, int] = field(default_factory=dict)
    skipped_sources: int = 0
    skipped_targets: int = 0
    index_collisions: Dict[str, int] = field(default_factory=dict)
    claim_conflicts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalSource": self.total_source,
            "totalTarget": self.total_target,
            "matchedCount": self.matched_count,
            "unmatchedCount": self.unmatched_count,
            "matchesByType": dict(self.matches_by_type),
            "skippedSources": self.skipped_sources,
            "skippedTargets": self.skipped_targets,
            "indexCollisions": dict(self.index_collisions),
            "claimConflicts": self.claim_conflicts,
        }


@dataclass
class MatchReport:
    """Matcher output: the proposed links plus statistics."""

    matches: List[MatchResult] = field(default_factory=list)
    stats: MatchStatistics = field(default_factory=MatchStatistics)
    unmatched_source_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matches": [match.to_contract() for match in self.matches],
            "stats": self.stats.to_dict(),
        }


@dataclass
class LoadedSnapshot:
    """Fully materialized source and target collections."""

    sources: List[SourceRecord] = field(default_factory=list)
    targets: List[TargetRecord] = field(default_factory=list)
    skipped_sources: int = 0
    skipped_targets: int = 0


@dataclass
class ApplyResult:
    """Structured response for MatchApplier.apply."""

    updated: int
    total_requested: int
    batches_committed: int
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "updated": self.updated,
            "total": self.total_requested,
            "batchesCommitted": self.batches_committed,
            "dryRun": self.dry_run,
        }


@dataclass
class RunReport:
    """End-to-end reconciliation run: match report plus optional apply."""

    report: MatchReport
    apply_result: Optional[ApplyResult] = None
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        payload = self.report.to_dict()
        if self.apply_result is not None:
            payload["apply"] = self.apply_result.to_dict()
        payload["durationMs"] = round(self.duration_ms, 1)
        return payload
