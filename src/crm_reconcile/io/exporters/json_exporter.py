"""
JSON export of match reports for manual review.

The written file is the output contract consumed by the review UI:
{"matches": [camelCase MatchResult...], "stats": {...}}. A reviewer may drop
or edit entries; read_match_results_json reads the edited file back so the
Applier can persist the accepted subset.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from crm_reconcile.domain.reconciliation.exceptions import InvalidMatchInput
from crm_reconcile.domain.reconciliation.models import MatchReport
from crm_reconcile.utils.logging import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


def write_match_report_json(report: MatchReport, path: PathLike) -> Path:
    """
    Write a match report to path, creating parent directories.

    Raises:
        OSError: If the directory or file cannot be written.
    """
    filepath = Path(path)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with filepath.open("w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, ensure_ascii=False, indent=2)

    logger.info(
        "json_exporter.report_written",
        filepath=str(filepath),
        matches=len(report.matches),
    )
    return filepath


def read_match_results_json(path: PathLike) -> List[Dict[str, Any]]:
    """
    Read match entries from a report file or a bare list of matches.

    Entries are returned as dicts; validation happens in the Applier so that
    all invalid entries are reported together.

    Raises:
        FileNotFoundError: If path does not exist.
        InvalidMatchInput: If the file is not valid JSON or has no match list.
    """
    filepath = Path(path)
    try:
        with filepath.open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidMatchInput(f"Invalid JSON in {filepath}: {e}") from e

    if isinstance(payload, dict):
        matches = payload.get("matches")
    else:
        matches = payload

    if not isinstance(matches, list):
        raise InvalidMatchInput(
            f"{filepath} must contain a list of matches or an object with a "
            f"'matches' list"
        )

    logger.info(
        "json_exporter.matches_read", filepath=str(filepath), matches=len(matches)
    )
    return matches
