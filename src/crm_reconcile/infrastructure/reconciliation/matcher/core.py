"""
Core RecordMatcher class.

Applies the matching strategies in strict priority order. Each strategy is a
pass over the sources still unmatched after the previous passes, so a source
leaves the pool at its first hit and the reported match type is always the
highest-priority strategy that found a target:

1. identifierA (account code)          confidence: high
2. identifierB → identifierC           confidence: high
3. normalized address                  confidence: medium
4. fuzzy display name (optional)       confidence: low

The matcher is pure over the loaded snapshot: no store access, no side
effects, and it never raises for missing or empty identifiers.
"""

import time
from typing import Dict, List, Optional, Sequence, Set

from crm_reconcile.domain.reconciliation.models import (
    MatchReport,
    MatchResult,
    MatchStatistics,
    SourceRecord,
)
from crm_reconcile.utils.logging import get_logger

from ..index_builder import TargetIndex
from ..types import STRATEGY_CONFIDENCE, MatchConfig, MatchType
from .address_strategy import match_by_address
from .base import Strategy
from .identifier_strategy import match_by_identifier_a, match_by_identifier_b
from .name_strategy import match_by_name

logger = get_logger(__name__)

STRATEGIES: Dict[MatchType, Strategy] = {
    MatchType.IDENTIFIER_A: match_by_identifier_a,
    MatchType.IDENTIFIER_B: match_by_identifier_b,
    MatchType.ADDRESS: match_by_address,
    MatchType.NAME: match_by_name,
}


class RecordMatcher:
    """
    Links each source record to at most one target record.

    Exclusivity is tracked per source id: once a source has a match, later
    strategies skip it. By default two different sources may still match the
    same target. With MatchConfig.exclusive_targets the first source to hit a
    target claims it; later hits on a claimed target are discarded, counted as
    claim conflicts, and the source falls through to the next strategy.

    Example:
        >>> index = build_target_index(targets)
        >>> report = RecordMatcher().match(sources, index)
        >>> report.stats.matched_count
        42
    """

    def __init__(self, config: Optional[MatchConfig] = None) -> None:
        self.config = config or MatchConfig()

    def match(
        self, sources: Sequence[SourceRecord], index: TargetIndex
    ) -> MatchReport:
        """
        Match every source against the target index.

        Args:
            sources: Source records. Callers that do not want already-linked
                records re-evaluated must filter them out beforehand.
            index: Target index from build_target_index.

        Returns:
            MatchReport with results ordered by strategy, then source order.

        Raises:
            TypeError: If index is not a TargetIndex.
        """
        if not isinstance(index, TargetIndex):
            raise TypeError(
                f"index must be a TargetIndex, got {type(index).__name__}"
            )

        started = time.perf_counter()
        matches: List[MatchResult] = []
        matched_source_ids: Set[str] = set()
        claimed_target_ids: Set[str] = set()
        stats = MatchStatistics(
            total_source=len(sources),
            total_target=index.total_targets,
            index_collisions=dict(index.collisions),
        )

        for match_type in self.config.strategy_order:
            strategy = STRATEGIES[match_type]
            confidence = STRATEGY_CONFIDENCE[match_type]
            hits = 0

            for source in sources:
                if source.source_id in matched_source_ids:
                    continue

                hit = strategy(source, index, self.config)
                if hit is None:
                    continue

                target_id = hit.target.target_id
                if self.config.exclusive_targets:
                    if target_id in claimed_target_ids:
                        stats.claim_conflicts += 1
                        continue
                    claimed_target_ids.add(target_id)

                matches.append(
                    MatchResult(
                        source_id=source.source_id,
                        source_display_name=source.display_name,
                        target_id=target_id,
                        target_display_name=hit.target.display_name,
                        match_type=match_type,
                        confidence=confidence,
                        matched_identifier_value=hit.matched_value,
                    )
                )
                matched_source_ids.add(source.source_id)
                hits += 1

            stats.matches_by_type[match_type.value] = hits
            logger.debug(
                "record_matcher.strategy_complete",
                strategy=match_type.value,
                hits=hits,
                matched_total=len(matches),
            )

        stats.matched_count = len(matches)
        stats.unmatched_count = stats.total_source - stats.matched_count
        unmatched_ids = [
            source.source_id
            for source in sources
            if source.source_id not in matched_source_ids
        ]

        logger.info(
            "record_matcher.match_complete",
            total_source=stats.total_source,
            total_target=stats.total_target,
            matched=stats.matched_count,
            unmatched=stats.unmatched_count,
            matches_by_type=stats.matches_by_type,
            claim_conflicts=stats.claim_conflicts,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return MatchReport(
            matches=matches, stats=stats, unmatched_source_ids=unmatched_ids
        )
