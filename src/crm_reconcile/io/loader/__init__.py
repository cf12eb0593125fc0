"""Record loading and match application against a DocumentStore."""

from .match_applier import MatchApplier, coerce_match_results
from .record_loader import RecordLoader, parse_source_document, parse_target_document

__all__ = [
    "MatchApplier",
    "RecordLoader",
    "coerce_match_results",
    "parse_source_document",
    "parse_target_document",
]
