"""
Match applier: persists accepted links onto source documents.

Each accepted match merge-writes the link fields (target id, target name,
match type, confidence, timestamp) onto the source document; every other field
of the document is preserved. Writes are grouped into fixed-size batches that
are committed one after another, each commit completing before the next batch
is staged, which bounds memory and in-flight writes.

There is no multi-batch atomicity: when a commit fails, the batches before it
stay committed and ApplyPartialFailure reports how far the run got. Applying
the same matches again is safe because the writes are merges.
"""

from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from crm_reconcile.domain.reconciliation.exceptions import (
    ApplyPartialFailure,
    InvalidMatchInput,
)
from crm_reconcile.domain.reconciliation.models import ApplyResult, MatchResult
from crm_reconcile.infrastructure.reconciliation.types import LinkFields
from crm_reconcile.io.store.base import DocumentStore
from crm_reconcile.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 500

MatchInput = Union[MatchResult, Mapping[str, Any]]


def coerce_match_results(matches: Iterable[MatchInput]) -> List[MatchResult]:
    """
    Validate matcher output or reviewer-edited dicts into MatchResults.

    Raises:
        InvalidMatchInput: If any entry is invalid. Nothing is written in
            that case, so a bad review file never half-applies.
    """
    results: List[MatchResult] = []
    errors: List[str] = []

    for position, match in enumerate(matches):
        if isinstance(match, MatchResult):
            results.append(match)
            continue
        if not isinstance(match, Mapping):
            errors.append(f"#{position}: expected an object, got {type(match).__name__}")
            continue
        try:
            results.append(MatchResult.model_validate(dict(match)))
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            errors.append(f"#{position}: invalid {', '.join(fields)}")

    if errors:
        preview = "; ".join(errors[:5])
        more = f" (+{len(errors) - 5} more)" if len(errors) > 5 else ""
        raise InvalidMatchInput(
            f"{len(errors)} invalid match entries: {preview}{more}"
        )
    return results


class MatchApplier:
    """
    Writes match results back to the source collection in batches.

    Usage:
        applier = MatchApplier(store, "fishbowl_customers")
        result = applier.apply(report.matches)
        result.updated
    """

    def __init__(
        self,
        store: DocumentStore,
        source_collection: str = "fishbowl_customers",
        link_fields: Optional[LinkFields] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.store = store
        self.source_collection = source_collection
        self.link_fields = link_fields or LinkFields()
        self.batch_size = batch_size

    def build_link_update(self, match: MatchResult, matched_at: str) -> dict:
        """Fields merged onto the source document for one match."""
        fields = self.link_fields
        return {
            fields.linked_target_id: match.target_id,
            fields.linked_target_name: match.target_display_name,
            fields.match_type: match.match_type.value,
            fields.match_confidence: match.confidence.value,
            fields.matched_at: matched_at,
        }

    def apply(
        self, matches: Sequence[MatchInput], dry_run: bool = False
    ) -> ApplyResult:
        """
        Persist links for every match.

        Args:
            matches: Matcher output or the reviewer-edited equivalent.
            dry_run: Validate and count without writing anything.

        Returns:
            ApplyResult with the number of records written.

        Raises:
            InvalidMatchInput: If the input fails validation (nothing written).
            ApplyPartialFailure: If a batch commit fails; earlier batches stay
                committed.
        """
        results = coerce_match_results(matches)
        total = len(results)

        if dry_run:
            batches = -(-total // self.batch_size)
            logger.info(
                "match_applier.dry_run",
                total_requested=total,
                batches=batches,
                collection=self.source_collection,
            )
            return ApplyResult(
                updated=0, total_requested=total, batches_committed=0, dry_run=True
            )

        matched_at = datetime.now(timezone.utc).isoformat()
        updated = 0
        batches_committed = 0

        for start in range(0, total, self.batch_size):
            chunk = results[start : start + self.batch_size]
            batch = self.store.batch()
            for match in chunk:
                batch.set(
                    self.source_collection,
                    match.source_id,
                    self.build_link_update(match, matched_at),
                    merge=True,
                )

            try:
                batch.commit()
            except Exception as e:
                logger.error(
                    "match_applier.batch_failed",
                    batch_number=batches_committed + 1,
                    batch_size=len(chunk),
                    batches_committed=batches_committed,
                    updated=updated,
                    total_requested=total,
                    error=str(e),
                )
                raise ApplyPartialFailure(
                    f"Batch commit failed: {e}",
                    batches_committed=batches_committed,
                    updated=updated,
                    total_requested=total,
                ) from e

            batches_committed += 1
            updated += len(chunk)
            logger.info(
                "match_applier.batch_committed",
                batch_number=batches_committed,
                updated=updated,
                total_requested=total,
            )

        logger.info(
            "match_applier.apply_complete",
            updated=updated,
            total_requested=total,
            batches_committed=batches_committed,
        )
        return ApplyResult(
            updated=updated,
            total_requested=total,
            batches_committed=batches_committed,
        )
