"""
Normalized address lookup strategy.

Used for new ERP customers that have no account code yet. Both sides are
normalized with the same function; addresses that normalize to
min_address_length characters or fewer never match, even when identical.
"""

from typing import Optional

from crm_reconcile.domain.reconciliation.models import SourceRecord

from ..index_builder import TargetIndex
from ..normalizer import is_matchable_address, normalize_address
from ..types import MatchConfig
from .base import StrategyHit


def match_by_address(
    source: SourceRecord, index: TargetIndex, config: MatchConfig
) -> Optional[StrategyHit]:
    normalized = normalize_address(source.address_line)
    if not is_matchable_address(normalized, config.min_address_length):
        return None
    target = index.by_normalized_address.get(normalized)
    if target is None:
        return None
    return StrategyHit(target=target, matched_value=source.address_line)
