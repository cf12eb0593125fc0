"""
Command-line entry point for crm-reconcile.

Usage:
    python -m crm_reconcile.cli <command> [options]

Available commands:
    match  - Load both collections, match, and write a review report
    apply  - Apply a (reviewed) report JSON to the source collection
    run    - Match and optionally apply in one step

Examples:
    # Match unlinked customers and export the report plus unmatched CSV
    python -m crm_reconcile.cli match --only-unlinked --unmatched-csv

    # Apply the reviewed report
    python -m crm_reconcile.cli apply --input exports/match_report.json

    # Preview a full run without writing
    python -m crm_reconcile.cli run --apply --dry-run
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from crm_reconcile.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_REPORT_NAME = "match_report.json"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARTIAL = 2


def _add_match_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--only-unlinked",
        action="store_true",
        help="Skip customers that already carry a linked company id",
    )
    parser.add_argument(
        "--exclusive-targets",
        action="store_true",
        help="Link each company to at most one customer per run",
    )
    parser.add_argument(
        "--name-matching",
        action="store_true",
        help="Enable the fuzzy display-name fallback strategy",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crm_reconcile.cli",
        description="Reconcile Fishbowl customers with Copper companies",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(
        title="commands", dest="command", required=True, help="Command to execute"
    )

    match_parser = subparsers.add_parser("match", help="Match and write a report")
    _add_match_options(match_parser)
    match_parser.add_argument(
        "--output",
        default=None,
        help=f"Report JSON path (default: <export_dir>/{DEFAULT_REPORT_NAME})",
    )
    match_parser.add_argument(
        "--unmatched-csv",
        action="store_true",
        help="Also export unmatched customers to CSV in the export directory",
    )

    apply_parser = subparsers.add_parser("apply", help="Apply a reviewed report")
    apply_parser.add_argument(
        "--input", required=True, help="Report or reviewed match list JSON"
    )
    apply_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and count without writing",
    )

    run_parser = subparsers.add_parser("run", help="Match and optionally apply")
    _add_match_options(run_parser)
    run_parser.add_argument(
        "--apply", action="store_true", help="Persist matches after matching"
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and count the apply without writing",
    )
    run_parser.add_argument(
        "--output", default=None, help="Also write the run report to this JSON path"
    )
    return parser


def _load_settings(args: argparse.Namespace) -> Any:
    from crm_reconcile.config.settings import get_settings

    settings = get_settings()
    overrides: Dict[str, Any] = {}
    if getattr(args, "exclusive_targets", False):
        overrides["exclusive_targets"] = True
    if getattr(args, "name_matching", False):
        overrides["enable_name_matching"] = True
    if overrides:
        settings = settings.model_copy(update=overrides)
    return settings


def _print_stats(stats: Dict[str, Any]) -> None:
    print(f"  Sources: {stats['totalSource']}, Targets: {stats['totalTarget']}")
    print(f"  Matched: {stats['matchedCount']}, Unmatched: {stats['unmatchedCount']}")
    for match_type, hits in stats["matchesByType"].items():
        print(f"    {match_type}: {hits}")
    if stats["skippedSources"] or stats["skippedTargets"]:
        print(
            f"  Skipped malformed: {stats['skippedSources']} sources, "
            f"{stats['skippedTargets']} targets"
        )


def _cmd_match(service: Any, settings: Any, args: argparse.Namespace) -> int:
    from crm_reconcile.io.exporters import (
        write_match_report_json,
        write_unmatched_sources_csv,
    )

    snapshot = service.load(only_unlinked=args.only_unlinked)
    report = service.match_snapshot(snapshot)

    output = Path(args.output or Path(settings.export_dir) / DEFAULT_REPORT_NAME)
    write_match_report_json(report, output)
    print(f"Report written to {output}")
    _print_stats(report.stats.to_dict())

    if args.unmatched_csv and report.unmatched_source_ids:
        csv_path = write_unmatched_sources_csv(
            snapshot.sources,
            {match.source_id for match in report.matches},
            settings.export_dir,
        )
        if csv_path:
            print(f"Unmatched customers written to {csv_path}")
    return EXIT_OK


def _cmd_apply(service: Any, args: argparse.Namespace) -> int:
    from crm_reconcile.io.exporters import read_match_results_json

    matches = read_match_results_json(args.input)
    result = service.apply(matches, dry_run=args.dry_run)
    prefix = "[DRY RUN] " if result.dry_run else ""
    print(f"{prefix}Updated {result.updated} of {result.total_requested} records")
    return EXIT_OK


def _cmd_run(service: Any, args: argparse.Namespace) -> int:
    run_report = service.run(
        apply=args.apply, dry_run=args.dry_run, only_unlinked=args.only_unlinked
    )
    payload = run_report.to_dict()
    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8"
        )
        print(f"Report written to {output}")

    _print_stats(payload["stats"])
    if run_report.apply_result is not None:
        result = run_report.apply_result
        prefix = "[DRY RUN] " if result.dry_run else ""
        print(f"{prefix}Updated {result.updated} of {result.total_requested} records")
    print(f"  Duration: {payload['durationMs']} ms")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point with subcommand routing.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 on success, 1 on error, 2 when an apply stopped partway.
    """
    from crm_reconcile.domain.reconciliation.exceptions import (
        ApplyPartialFailure,
        ReconciliationError,
    )

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _load_settings(args)
    except Exception as e:
        print(f"Failed to load settings: {e}", file=sys.stderr)
        return EXIT_ERROR

    try:
        from crm_reconcile.domain.reconciliation.service import (
            ReconciliationService,
        )
        from crm_reconcile.io.store import create_document_store

        store = create_document_store(settings)
        service = ReconciliationService(store, settings=settings)
    except Exception as e:
        print(f"Failed to initialise store: {e}", file=sys.stderr)
        return EXIT_ERROR

    try:
        if args.command == "match":
            return _cmd_match(service, settings, args)
        if args.command == "apply":
            return _cmd_apply(service, args)
        if args.command == "run":
            return _cmd_run(service, args)
        parser.print_help()
        return EXIT_ERROR
    except ApplyPartialFailure as e:
        logger.error("cli.apply_partial_failure", error=str(e))
        print(
            f"Apply stopped: updated {e.updated} of {e.total_requested} records "
            f"({e.batches_committed} batches committed). Re-run to finish.",
            file=sys.stderr,
        )
        return EXIT_PARTIAL
    except (ReconciliationError, ValueError, OSError) as e:
        logger.error("cli.command_failed", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
