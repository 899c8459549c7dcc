"""
Utility functions for CSV Compare.

Includes report file naming and JSON summary helpers.
"""

import json
import os
from collections import OrderedDict
from datetime import datetime
from typing import Optional

from .result import ComparisonResult


def generate_report_name(
    file1: str,
    file2: str,
    prefix: str = "compare",
    extension: str = "csv",
    timestamp: Optional[datetime] = None,
) -> str:
    """
    Generate a report file name from the compared files and a timestamp.

    Format: <prefix>_YYYYMMDD_HHMMSS_<file1>_vs_<file2>.<extension>

    Args:
        file1: Path of the first compared file
        file2: Path of the second compared file
        prefix: Leading name part
        extension: File extension without the dot
        timestamp: Time to stamp with (defaults to now)

    Returns:
        File name string
    """
    stamp = (timestamp or datetime.now()).strftime("%Y%m%d_%H%M%S")
    base1 = os.path.splitext(os.path.basename(file1))[0]
    base2 = os.path.splitext(os.path.basename(file2))[0]
    return f"{prefix}_{stamp}_{base1}_vs_{base2}.{extension}"


def create_summary_structure(
    result: ComparisonResult,
    file1: Optional[str] = None,
    file2: Optional[str] = None,
    runtime_seconds: float = 0.0,
    max_examples: int = 10,
) -> OrderedDict:
    """
    Create a JSON-friendly summary of a comparison.

    Args:
        result: Comparison result to summarize
        file1: Path of the first compared file
        file2: Path of the second compared file
        runtime_seconds: Total runtime
        max_examples: Maximum example keys listed per category

    Returns:
        OrderedDict with counts, column lists and example keys
    """
    def examples(table):
        positions = [table.position(c) for c in result.identifier_columns]
        return [
            [row.values[p] for p in positions]
            for row in table.rows[:max_examples]
        ]

    summary = OrderedDict()
    if file1:
        summary["file1"] = os.path.basename(file1)
    if file2:
        summary["file2"] = os.path.basename(file2)
    summary["identifier_columns"] = list(result.identifier_columns)
    summary["file1_row_count"] = result.rows1
    summary["file2_row_count"] = result.rows2
    summary["matched_rows"] = result.matched_rows
    summary["rows_with_differences"] = result.rows_with_differences()
    summary["difference_count"] = len(result.differences)
    summary["differences_by_column"] = result.differences_by_column()
    summary["file1_only_columns"] = list(result.orphan_columns1)
    summary["file2_only_columns"] = list(result.orphan_columns2)
    summary["file1_only_rows"] = len(result.orphan_rows1)
    summary["file2_only_rows"] = len(result.orphan_rows2)
    summary["example_keys_file1_only"] = examples(result.orphan_rows1)
    summary["example_keys_file2_only"] = examples(result.orphan_rows2)
    summary["identical"] = result.is_identical
    summary["runtime_seconds"] = round(runtime_seconds, 2)
    return summary


def save_summary(summary_dir: str, summary: OrderedDict, filename: Optional[str] = None) -> str:
    """
    Save a summary as JSON in the summary directory.

    Returns:
        Path to the saved summary file
    """
    os.makedirs(summary_dir, exist_ok=True)
    if filename is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"compare_summary_{timestamp}.json"

    summary_path = os.path.join(summary_dir, filename)
    with open(summary_path, 'w') as f:
        json.dump(summary, f, indent=2)

    return summary_path
