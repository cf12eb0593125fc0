"""
Identifier lookup strategies.

Strategy 1 joins the source account code to the target account code.
Strategy 2 joins the source identifier_b to the target identifier_c: the two
systems named the same identifier differently across migrations, and this
strategy is the translation between them.

Values are already trimmed by the models; None means "no value" and is never
used as a key.
"""

from typing import Optional

from crm_reconcile.domain.reconciliation.models import SourceRecord

from ..index_builder import TargetIndex
from ..types import MatchConfig
from .base import StrategyHit


def match_by_identifier_a(
    source: SourceRecord, index: TargetIndex, config: MatchConfig
) -> Optional[StrategyHit]:
    if not source.identifier_a:
        return None
    target = index.by_identifier_a.get(source.identifier_a)
    if target is None:
        return None
    return StrategyHit(target=target, matched_value=source.identifier_a)


def match_by_identifier_b(
    source: SourceRecord, index: TargetIndex, config: MatchConfig
) -> Optional[StrategyHit]:
    if not source.identifier_b:
        return None
    target = index.by_identifier_c.get(source.identifier_b)
    if target is None:
        return None
    return StrategyHit(target=target, matched_value=source.identifier_b)
