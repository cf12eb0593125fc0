"""
Fuzzy display-name strategy (optional, low confidence).

Similarity is 1 - levenshtein / len(longer name) over normalized names and
must be strictly greater than the configured threshold.
Candidates are restricted to targets sharing the first normalized name token,
so a source is compared against one block rather than every target.
"""

from typing import Optional

from rapidfuzz.distance import Levenshtein

from crm_reconcile.domain.reconciliation.models import SourceRecord

from ..index_builder import TargetIndex
from ..normalizer import name_block_key, normalize_name
from ..types import MatchConfig
from .base import StrategyHit


def match_by_name(
    source: SourceRecord, index: TargetIndex, config: MatchConfig
) -> Optional[StrategyHit]:
    source_name = normalize_name(source.display_name)
    candidates = index.by_name_block.get(name_block_key(source_name))
    if not candidates:
        return None

    best = None
    best_score = 0.0
    for target in candidates:
        score = Levenshtein.normalized_similarity(
            source_name, normalize_name(target.display_name)
        )
        if score <= config.name_similarity_threshold:
            continue
        # Ties keep the first candidate in store order
        if score > best_score:
            best, best_score = target, score

    if best is None:
        return None
    return StrategyHit(target=best, matched_value=source.display_name)
