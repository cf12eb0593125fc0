"""
Type definitions for ERP → CRM record reconciliation.

This module defines the configuration types shared by the Loader, the Index
Builder, the Matcher and the Applier:

- MatchType / Confidence: the labels attached to each match result
- MatchConfig: matcher behavior switches
- RecordSchema: document field aliases per model field (schema drift)
- LinkFields: names of the fields the Applier writes on source documents
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple


class MatchType(str, Enum):
    """Strategy that produced a match, in priority order."""

    IDENTIFIER_A = "identifierA"
    IDENTIFIER_B = "identifierB"
    ADDRESS = "address"
    NAME = "name"


class Confidence(str, Enum):
    """Coarse trust label derived solely from the strategy."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Strategy → confidence
STRATEGY_CONFIDENCE: Dict[MatchType, Confidence] = {
    MatchType.IDENTIFIER_A: Confidence.HIGH,
    MatchType.IDENTIFIER_B: Confidence.HIGH,
    MatchType.ADDRESS: Confidence.MEDIUM,
    MatchType.NAME: Confidence.LOW,
}


@dataclass(frozen=True)
class MatchConfig:
    """
    Matcher behavior switches.

    Attributes:
        min_address_length: Normalized addresses must be strictly longer than
            this to be indexed or queried.
        exclusive_targets: When True, a target claimed by one source is not
            offered to later sources in the same run.
        enable_name_matching: Append the fuzzy display-name strategy.
        name_similarity_threshold: Similarity (0-1) a name match must exceed.
    """

    min_address_length: int = 5
    exclusive_targets: bool = False
    enable_name_matching: bool = False
    name_similarity_threshold: float = 0.85

    @classmethod
    def from_settings(cls, settings: Any) -> "MatchConfig":
        return cls(
            min_address_length=settings.min_address_length,
            exclusive_targets=settings.exclusive_targets,
            enable_name_matching=settings.enable_name_matching,
            name_similarity_threshold=settings.name_similarity_threshold,
        )

    @property
    def strategy_order(self) -> Tuple[MatchType, ...]:
        order = (MatchType.IDENTIFIER_A, MatchType.IDENTIFIER_B, MatchType.ADDRESS)
        if self.enable_name_matching:
            return order + (MatchType.NAME,)
        return order


# Field names as found in the Fishbowl and Copper documents
DEFAULT_SOURCE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "display_name": ("name", "displayName"),
    "identifier_a": ("accountId",),
    "identifier_b": ("accountNumber",),
    "address_line": ("address", "street"),
    "linked_target_id": ("copperCompanyId", "linkedTargetId"),
    "match_type": ("matchType",),
    "match_confidence": ("matchConfidence",),
}

DEFAULT_TARGET_ALIASES: Dict[str, Tuple[str, ...]] = {
    "target_id": ("id", "targetId"),
    "display_name": ("Name", "name", "displayName"),
    "identifier_a": ("Account ID", "accountId"),
    "identifier_c": ("Account Order ID cf_698467", "accountOrderId"),
    "address_line": ("Street", "street", "Address", "address"),
}


@dataclass(frozen=True)
class RecordSchema:
    """
    Maps model fields to the ordered document keys that may hold them.

    The first key holding a non-empty value wins. Keys that are not listed
    here never reach the models, so they cannot influence matching.
    """

    source_aliases: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_SOURCE_ALIASES)
    )
    target_aliases: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_TARGET_ALIASES)
    )

    @classmethod
    def from_mapping(
        cls,
        source: Optional[Mapping[str, Sequence[str]]] = None,
        target: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> "RecordSchema":
        """Build a schema, overriding defaults field by field."""
        source_aliases = dict(DEFAULT_SOURCE_ALIASES)
        target_aliases = dict(DEFAULT_TARGET_ALIASES)
        for name, keys in (source or {}).items():
            source_aliases[name] = tuple(keys)
        for name, keys in (target or {}).items():
            target_aliases[name] = tuple(keys)
        return cls(source_aliases=source_aliases, target_aliases=target_aliases)

    def extract_source(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        return _extract(data, self.source_aliases)

    def extract_target(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        return _extract(data, self.target_aliases)


def _extract(
    data: Mapping[str, Any], aliases: Mapping[str, Tuple[str, ...]]
) -> Dict[str, Any]:
    extracted: Dict[str, Any] = {}
    for name, keys in aliases.items():
        for key in keys:
            value = data.get(key)
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            extracted[name] = value
            break
    return extracted


@dataclass(frozen=True)
class LinkFields:
    """Document field names written onto a source record by the Applier."""

    linked_target_id: str = "copperCompanyId"
    linked_target_name: str = "copperCompanyName"
    match_type: str = "matchType"
    match_confidence: str = "matchConfidence"
    matched_at: str = "matchedAt"

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, str]]) -> "LinkFields":
        if not mapping:
            return cls()
        return cls(**{str(k): str(v) for k, v in mapping.items()})
