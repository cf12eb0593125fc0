"""
Record matcher package.

Priority-ordered strategies over a prebuilt TargetIndex:
1. identifierA (account code)
2. identifierB → identifierC (schema-drift translation)
3. normalized address
4. fuzzy display name (optional)
"""

from .base import StrategyHit
from .core import STRATEGIES, RecordMatcher

__all__ = [
    "RecordMatcher",
    "STRATEGIES",
    "StrategyHit",
]
