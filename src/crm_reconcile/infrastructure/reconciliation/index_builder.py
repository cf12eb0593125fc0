"""
Target index construction.

Builds O(1) lookup maps over the CRM company list so the Matcher never scans
the targets per source record. One map per matching strategy:

- by_identifier_a: account code → target
- by_identifier_c: alternate identifier → target
- by_normalized_address: normalize_address(address_line) → target
- by_name_block: first normalized name token → targets (name strategy only)

Keys are trimmed, case-sensitive strings. When two targets share a key the
later one overwrites the earlier one; overwrites are counted per index in
TargetIndex.collisions so callers can audit them. The index is never mutated
after build_target_index returns.
"""

import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from crm_reconcile.domain.reconciliation.models import TargetRecord
from crm_reconcile.utils.logging import get_logger

from .normalizer import (
    is_matchable_address,
    name_block_key,
    normalize_address,
    normalize_name,
)
from .types import MatchConfig

logger = get_logger(__name__)

INDEX_IDENTIFIER_A = "identifier_a"
INDEX_IDENTIFIER_C = "identifier_c"
INDEX_ADDRESS = "address"


@dataclass
class TargetIndex:
    """Read-only lookup structures over the target records."""

    by_identifier_a: Dict[str, TargetRecord] = field(default_factory=dict)
    by_identifier_c: Dict[str, TargetRecord] = field(default_factory=dict)
    by_normalized_address: Dict[str, TargetRecord] = field(default_factory=dict)
    by_name_block: Dict[str, List[TargetRecord]] = field(default_factory=dict)
    collisions: Dict[str, int] = field(
        default_factory=lambda: {
            INDEX_IDENTIFIER_A: 0,
            INDEX_IDENTIFIER_C: 0,
            INDEX_ADDRESS: 0,
        }
    )
    total_targets: int = 0
    min_address_length: int = 5

    @property
    def total_collisions(self) -> int:
        return sum(self.collisions.values())

    def sizes(self) -> Dict[str, int]:
        return {
            INDEX_IDENTIFIER_A: len(self.by_identifier_a),
            INDEX_IDENTIFIER_C: len(self.by_identifier_c),
            INDEX_ADDRESS: len(self.by_normalized_address),
            "name_blocks": len(self.by_name_block),
        }


def _put(
    index: Dict[str, TargetRecord],
    key: Optional[str],
    target: TargetRecord,
    collisions: Dict[str, int],
    index_name: str,
) -> None:
    if not key:
        return
    existing = index.get(key)
    if existing is not None and existing.target_id != target.target_id:
        collisions[index_name] += 1
    index[key] = target


def build_target_index(
    targets: Iterable[TargetRecord], config: Optional[MatchConfig] = None
) -> TargetIndex:
    """
    Build the per-strategy lookup maps.

    Args:
        targets: Target records in store iteration order.
        config: Matching configuration (address threshold, name strategy).

    Returns:
        TargetIndex ready to be shared read-only by the Matcher.
    """
    config = config or MatchConfig()
    started = time.perf_counter()
    index = TargetIndex(min_address_length=config.min_address_length)
    name_blocks: Dict[str, List[TargetRecord]] = defaultdict(list)

    for target in targets:
        index.total_targets += 1

        _put(
            index.by_identifier_a,
            target.identifier_a,
            target,
            index.collisions,
            INDEX_IDENTIFIER_A,
        )
        _put(
            index.by_identifier_c,
            target.identifier_c,
            target,
            index.collisions,
            INDEX_IDENTIFIER_C,
        )

        normalized = normalize_address(target.address_line)
        # Short addresses are excluded from the index entirely
        if is_matchable_address(normalized, config.min_address_length):
            _put(
                index.by_normalized_address,
                normalized,
                target,
                index.collisions,
                INDEX_ADDRESS,
            )

        if config.enable_name_matching:
            block = name_block_key(normalize_name(target.display_name))
            if block:
                name_blocks[block].append(target)

    index.by_name_block = dict(name_blocks)

    logger.info(
        "index_builder.index_built",
        total_targets=index.total_targets,
        duration_ms=round((time.perf_counter() - started) * 1000, 1),
        collisions=index.collisions,
        **index.sizes(),
    )
    if index.total_collisions:
        logger.warning(
            "index_builder.key_collisions",
            msg="Targets sharing a key; only the last one is reachable via that index",
            **index.collisions,
        )
    return index
