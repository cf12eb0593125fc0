"""
CSV export of unmatched source records.

Sources that no strategy could link are written out for manual follow-up in
the CRM (create the company, fix the account code, and re-run).
"""

import csv
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from crm_reconcile.domain.reconciliation.models import SourceRecord
from crm_reconcile.utils.logging import get_logger

logger = get_logger(__name__)

UNMATCHED_CSV_HEADERS = [
    "source_id",
    "display_name",
    "identifier_a",
    "identifier_b",
    "address_line",
]


def _row(source: SourceRecord) -> List[str]:
    return [
        source.source_id,
        source.display_name,
        source.identifier_a or "",
        source.identifier_b or "",
        source.address_line or "",
    ]


def write_unmatched_sources_csv(
    sources: Sequence[SourceRecord],
    matched_ids: Iterable[str],
    output_dir: str = "exports/",
) -> Optional[Path]:
    """
    Write every source whose id is not in matched_ids to a new CSV file.

    Args:
        sources: Source records offered to the matcher.
        matched_ids: Source ids that received a match.
        output_dir: Directory for CSV output (created if missing).

    Returns:
        Path to the created file, or None if every source was matched.

    Raises:
        OSError: If directory creation or file writing fails.
    """
    matched = set(matched_ids)
    rows = [_row(source) for source in sources if source.source_id not in matched]
    if not rows:
        logger.info("csv_exporter.nothing_to_export")
        return None

    output_path = Path(output_dir)
    try:
        output_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(
            "csv_exporter.mkdir_failed", output_dir=str(output_path), error=str(e)
        )
        raise

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    suffix = uuid.uuid4().hex[:8]
    filepath = output_path / f"unmatched_sources_{timestamp}_{suffix}.csv"

    try:
        with filepath.open("w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(UNMATCHED_CSV_HEADERS)
            writer.writerows(rows)
    except OSError as e:
        logger.error("csv_exporter.write_failed", filepath=str(filepath), error=str(e))
        raise

    logger.info("csv_exporter.unmatched_exported", filepath=str(filepath), count=len(rows))
    return filepath
