"""Review-step file exports: match report JSON and unmatched-source CSV."""

from .csv_exporter import UNMATCHED_CSV_HEADERS, write_unmatched_sources_csv
from .json_exporter import read_match_results_json, write_match_report_json

__all__ = [
    "UNMATCHED_CSV_HEADERS",
    "read_match_results_json",
    "write_match_report_json",
    "write_unmatched_sources_csv",
]
