"""ERP → CRM reconciliation domain: models, errors and orchestration service."""

from .exceptions import (
    ApplyPartialFailure,
    InvalidMatchInput,
    LoadFailure,
    MalformedRecordError,
    ReconciliationError,
)

__all__ = [
    "ApplyPartialFailure",
    "InvalidMatchInput",
    "LoadFailure",
    "MalformedRecordError",
    "ReconciliationError",
]
