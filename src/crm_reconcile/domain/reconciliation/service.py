"""
Reconciliation service: sequences one end-to-end run.

    load (both collections) → build target index → match → [review] → apply

The service owns no state between calls; every match() reloads both
collections so a run always sees a consistent, complete snapshot. Stage
timings are logged under the reconciliation.* events.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence, Union

from crm_reconcile.domain.reconciliation.models import (
    ApplyResult,
    LoadedSnapshot,
    MatchReport,
    MatchResult,
    RunReport,
)
from crm_reconcile.infrastructure.reconciliation.index_builder import (
    build_target_index,
)
from crm_reconcile.infrastructure.reconciliation.matcher import RecordMatcher
from crm_reconcile.infrastructure.reconciliation.types import (
    LinkFields,
    MatchConfig,
    RecordSchema,
)
from crm_reconcile.io.loader import MatchApplier, RecordLoader
from crm_reconcile.utils.logging import get_logger

if TYPE_CHECKING:
    from crm_reconcile.config.settings import Settings
    from crm_reconcile.io.store.base import DocumentStore

logger = get_logger(__name__)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)


class ReconciliationService:
    """
    Runs the Fishbowl → Copper reconciliation against one DocumentStore.

    Args:
        store: Backend holding both collections.
        settings: Collection names, matching switches and batch size. Defaults
            to get_settings().
        schema: Document field aliases. Defaults to the settings' schema file,
            or the built-in aliases.
        link_fields: Field names written by the Applier (same default chain).

    Usage:
        service = ReconciliationService(store)
        report = service.match(only_unlinked=True)
        service.apply(report.matches)
    """

    def __init__(
        self,
        store: "DocumentStore",
        settings: Optional["Settings"] = None,
        schema: Optional[RecordSchema] = None,
        link_fields: Optional[LinkFields] = None,
    ) -> None:
        if settings is None:
            from crm_reconcile.config.settings import get_settings

            settings = get_settings()

        if schema is None or link_fields is None:
            from crm_reconcile.config.schema_loader import load_record_schema

            file_schema, file_link_fields = load_record_schema(
                settings.record_schema_path
            )
            schema = schema or file_schema
            link_fields = link_fields or file_link_fields

        self.store = store
        self.settings = settings
        self.schema = schema
        self.link_fields = link_fields
        self.config = MatchConfig.from_settings(settings)

    def load(self, only_unlinked: bool = False) -> LoadedSnapshot:
        """Load both collections; raises LoadFailure on any read error."""
        loader = RecordLoader(
            self.store,
            self.schema,
            source_collection=self.settings.source_collection,
            target_collection=self.settings.target_collection,
        )
        return loader.load(only_unlinked=only_unlinked)

    def match(self, only_unlinked: bool = False) -> MatchReport:
        """
        Load, index and match.

        Args:
            only_unlinked: Skip sources already carrying a linked target id.

        Returns:
            MatchReport with loader skip counts folded into its statistics.

        Raises:
            LoadFailure: If either collection cannot be read.
        """
        started = time.perf_counter()
        snapshot = self.load(only_unlinked=only_unlinked)
        logger.info("reconciliation.load_complete", load_ms=_elapsed_ms(started))
        return self.match_snapshot(snapshot)

    def match_snapshot(self, snapshot: LoadedSnapshot) -> MatchReport:
        """Index and match an already loaded snapshot."""
        index_started = time.perf_counter()
        index = build_target_index(snapshot.targets, self.config)
        index_ms = _elapsed_ms(index_started)

        match_started = time.perf_counter()
        report = RecordMatcher(self.config).match(snapshot.sources, index)
        report.stats.skipped_sources = snapshot.skipped_sources
        report.stats.skipped_targets = snapshot.skipped_targets
        match_ms = _elapsed_ms(match_started)

        logger.info(
            "reconciliation.match_complete",
            index_ms=index_ms,
            match_ms=match_ms,
            matched=report.stats.matched_count,
            unmatched=report.stats.unmatched_count,
            skipped_sources=snapshot.skipped_sources,
            skipped_targets=snapshot.skipped_targets,
        )
        return report

    def apply(
        self,
        matches: Sequence[Union[MatchResult, Mapping[str, Any]]],
        dry_run: bool = False,
    ) -> ApplyResult:
        """
        Persist reviewed matches onto the source collection.

        Raises:
            InvalidMatchInput: If any entry fails validation (nothing written).
            ApplyPartialFailure: If a batch commit fails.
        """
        applier = MatchApplier(
            self.store,
            source_collection=self.settings.source_collection,
            link_fields=self.link_fields,
            batch_size=self.settings.apply_batch_size,
        )
        return applier.apply(matches, dry_run=dry_run)

    def run(
        self,
        apply: bool = False,
        dry_run: bool = False,
        only_unlinked: bool = False,
    ) -> RunReport:
        """
        Run a full reconciliation.

        Args:
            apply: Persist the matches after matching.
            dry_run: Validate and count the apply without writing.
            only_unlinked: Skip sources already linked.

        Returns:
            RunReport with the match report and, if requested, the apply result.
        """
        started = time.perf_counter()
        report = self.match(only_unlinked=only_unlinked)

        apply_result = None
        if apply or dry_run:
            apply_result = self.apply(report.matches, dry_run=dry_run)

        duration_ms = _elapsed_ms(started)
        logger.info(
            "reconciliation.run_complete",
            duration_ms=duration_ms,
            matched=report.stats.matched_count,
            applied=apply_result.updated if apply_result else 0,
            dry_run=dry_run,
        )
        return RunReport(
            report=report, apply_result=apply_result, duration_ms=duration_ms
        )
