"""
Record loader for the reconciliation run.

Reads the complete source (Fishbowl customer) and target (Copper company)
collections into memory. Later stages need random access over the full target
set, so both collections are fully materialized before anything is indexed.

Failure policy:
- A store read failure aborts the load with LoadFailure; no partial snapshot
  is ever returned, so matching can never run against a subset.
- A malformed document (not a mapping, empty key, missing target id, invalid
  field values) is skipped and counted; the load continues.
"""

import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar

from pydantic import ValidationError

from crm_reconcile.domain.reconciliation.exceptions import (
    LoadFailure,
    MalformedRecordError,
)
from crm_reconcile.domain.reconciliation.models import (
    LoadedSnapshot,
    SourceRecord,
    TargetRecord,
)
from crm_reconcile.infrastructure.reconciliation.types import RecordSchema
from crm_reconcile.io.store.base import DocumentStore
from crm_reconcile.utils.logging import get_logger

logger = get_logger(__name__)

RecordT = TypeVar("RecordT")


def parse_source_document(
    key: str, data: Any, schema: RecordSchema
) -> SourceRecord:
    """
    Build a SourceRecord from a source document.

    The document key is the source id.

    Raises:
        MalformedRecordError: If the document cannot form a valid record.
    """
    if not isinstance(data, Mapping):
        raise MalformedRecordError("Document body is not a mapping", store_key=key)
    if not key or not str(key).strip():
        raise MalformedRecordError("Document key is empty", store_key=key)

    fields = schema.extract_source(data)
    try:
        return SourceRecord(source_id=key, **fields)
    except ValidationError as e:
        raise MalformedRecordError(
            f"Invalid source document: {e.error_count()} field error(s)",
            store_key=key,
        ) from e


def parse_target_document(
    key: str, data: Any, schema: RecordSchema
) -> TargetRecord:
    """
    Build a TargetRecord from a target document.

    The target id is read from the document body, not from the store key.

    Raises:
        MalformedRecordError: If the document has no target id or is invalid.
    """
    if not isinstance(data, Mapping):
        raise MalformedRecordError("Document body is not a mapping", store_key=key)

    fields = schema.extract_target(data)
    if "target_id" not in fields:
        raise MalformedRecordError("Document has no target id", store_key=key)

    try:
        return TargetRecord(store_key=key, **fields)
    except ValidationError as e:
        raise MalformedRecordError(
            f"Invalid target document: {e.error_count()} field error(s)",
            store_key=key,
        ) from e


class RecordLoader:
    """
    Loads both collections from a DocumentStore.

    Usage:
        loader = RecordLoader(store, RecordSchema())
        snapshot = loader.load()
        len(snapshot.targets)
    """

    def __init__(
        self,
        store: DocumentStore,
        schema: Optional[RecordSchema] = None,
        source_collection: str = "fishbowl_customers",
        target_collection: str = "copper_companies",
    ) -> None:
        self.store = store
        self.schema = schema or RecordSchema()
        self.source_collection = source_collection
        self.target_collection = target_collection

    def load(self, only_unlinked: bool = False) -> LoadedSnapshot:
        """
        Load all source and target records.

        Args:
            only_unlinked: Drop sources that already carry a linked target id,
                so they are not re-evaluated by the matcher.

        Returns:
            LoadedSnapshot with parsed records and skip counts.

        Raises:
            LoadFailure: If either collection cannot be read completely.
        """
        sources, skipped_sources = self._load_collection(
            self.source_collection, parse_source_document
        )
        targets, skipped_targets = self._load_collection(
            self.target_collection, parse_target_document
        )

        if only_unlinked:
            before = len(sources)
            sources = [s for s in sources if not s.linked_target_id]
            logger.info(
                "record_loader.linked_sources_filtered",
                filtered=before - len(sources),
                remaining=len(sources),
            )

        return LoadedSnapshot(
            sources=sources,
            targets=targets,
            skipped_sources=skipped_sources,
            skipped_targets=skipped_targets,
        )

    def _load_collection(
        self,
        collection: str,
        parse: Callable[[str, Any, RecordSchema], RecordT],
    ) -> Tuple[List[RecordT], int]:
        started = time.perf_counter()
        records: List[RecordT] = []
        skipped = 0
        skip_reasons: Dict[str, int] = {}

        try:
            for key, data in self.store.stream(collection):
                try:
                    records.append(parse(key, data, self.schema))
                except MalformedRecordError as e:
                    skipped += 1
                    reason = "invalid_fields" if e.__cause__ else "missing_key_field"
                    skip_reasons[reason] = skip_reasons.get(reason, 0) + 1
                    logger.debug(
                        "record_loader.malformed_record_skipped",
                        collection=collection,
                        store_key=e.store_key,
                        error=str(e),
                    )
        except Exception as e:
            logger.error(
                "record_loader.read_failed",
                collection=collection,
                loaded_before_failure=len(records),
                error=str(e),
            )
            raise LoadFailure(f"Failed to read collection: {e}", collection) from e

        logger.info(
            "record_loader.collection_loaded",
            collection=collection,
            loaded=len(records),
            skipped=skipped,
            skip_reasons=skip_reasons,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return records, skipped
