"""Shared strategy types for the record matcher."""

from typing import Callable, NamedTuple, Optional

from crm_reconcile.domain.reconciliation.models import SourceRecord, TargetRecord

from ..index_builder import TargetIndex
from ..types import MatchConfig


class StrategyHit(NamedTuple):
    """A target found by one strategy, with the key value that found it."""

    target: TargetRecord
    matched_value: Optional[str]


# (source, index, config) -> hit or None
Strategy = Callable[[SourceRecord, TargetIndex, MatchConfig], Optional[StrategyHit]]
