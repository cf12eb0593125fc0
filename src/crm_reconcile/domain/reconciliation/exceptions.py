"""
Exception hierarchy for the reconciliation run.

Loader and Applier failures surface to the caller as one of these errors;
the Matcher never raises for data-quality reasons.
"""

from typing import Optional


class ReconciliationError(Exception):
    """Base exception for all reconciliation errors."""

    pass


class LoadFailure(ReconciliationError):
    """
    Raised when a collection cannot be read completely.

    Fatal: the run stops before indexing, no partial snapshot is produced.

    Args:
        message: Error description
        collection: Name of the collection being read (optional)
    """

    def __init__(self, message: str, collection: Optional[str] = None):
        self.collection = collection
        if collection:
            message = f"{message} (collection='{collection}')"
        super().__init__(message)


class MalformedRecordError(ReconciliationError):
    """
    Raised when a document lacks a key field (e.g. a company with no id).

    The Loader catches this, skips the document and counts it.
    """

    def __init__(self, message: str, store_key: Optional[str] = None):
        self.store_key = store_key
        if store_key:
            message = f"{message} (store_key='{store_key}')"
        super().__init__(message)


class InvalidMatchInput(ReconciliationError):
    """Raised when match results handed to the Applier fail validation."""

    pass


class ApplyPartialFailure(ReconciliationError):
    """
    Raised when a batch commit fails partway through the Applier loop.

    Batches committed before the failure stay committed. Re-running the apply
    is safe because every write is an idempotent merge.

    Args:
        message: Error description
        batches_committed: Batches durably committed before the failure
        updated: Records written by those batches
        total_requested: Records the caller asked to apply
    """

    def __init__(
        self,
        message: str,
        batches_committed: int,
        updated: int,
        total_requested: int,
    ):
        self.batches_committed = batches_committed
        self.updated = updated
        self.total_requested = total_requested
        super().__init__(
            f"{message} (batches_committed={batches_committed}, "
            f"updated={updated}, total_requested={total_requested})"
        )
