"""
Reconciliation infrastructure: normalization, target indexing and matching.

Exports are resolved lazily so that the domain models can import the shared
types without pulling in the matcher (which depends on those models).
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any

__all__ = [
    "Confidence",
    "LinkFields",
    "MatchConfig",
    "MatchType",
    "RecordMatcher",
    "RecordSchema",
    "TargetIndex",
    "build_target_index",
    "normalize_address",
    "normalize_name",
]

_EXPORTS = {
    "Confidence": ".types",
    "LinkFields": ".types",
    "MatchConfig": ".types",
    "MatchType": ".types",
    "RecordSchema": ".types",
    "TargetIndex": ".index_builder",
    "build_target_index": ".index_builder",
    "normalize_address": ".normalizer",
    "normalize_name": ".normalizer",
    "RecordMatcher": ".matcher",
}

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from .index_builder import TargetIndex, build_target_index
    from .matcher import RecordMatcher
    from .normalizer import normalize_address, normalize_name
    from .types import Confidence, LinkFields, MatchConfig, MatchType, RecordSchema


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module = importlib.import_module(_EXPORTS[name], __name__)
        return getattr(module, name)
    raise AttributeError(
        f"module 'crm_reconcile.infrastructure.reconciliation' has no attribute {name!r}"
    )
