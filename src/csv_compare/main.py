"""
Main execution logic for CSV Compare.

Reads both files, runs the comparison off the event loop, renders the
outcome to the log and writes the optional report and summary. Errors from
every stage end up in run_main, which turns them into one log line and an
exit status.
"""

import asyncio
import logging
import os
from datetime import datetime
from typing import Optional

from .comparer import ComparisonEngine
from .config import CompareConfig, OutputConfig, RuntimeConfig, split_columns
from .csv_reader import read_table_async
from .csv_writer import write_comparison_results_async
from .errors import CsvCompareError
from .progress import ProgressDisplay
from .result import ComparisonResult
from .utils import create_summary_structure, generate_report_name, save_summary


EXIT_IDENTICAL = 0
EXIT_DIFFERENT = 1
EXIT_ERROR = 2

# Difference lines logged before the rest are summarized
MAX_LOGGED_DIFFERENCES = 20


def build_runtime_config(args) -> RuntimeConfig:
    """Turn parsed command line arguments into a RuntimeConfig."""
    compare = CompareConfig(
        identifier_columns=split_columns(args.identifier),
        exclusion_columns=split_columns(args.exclude),
        inclusion_columns=split_columns(args.include),
        trim_key_whitespace=not args.no_trim_keys,
        workers=args.workers,
        batch_size=args.batch_size,
        max_rows=args.max_rows,
    )
    report_path = args.output or None
    if not report_path and args.report_dir:
        report_path = os.path.join(args.report_dir, generate_report_name(args.file1, args.file2))
    output = OutputConfig(report_path=report_path, summary_dir=args.summary_dir or None)
    return RuntimeConfig(
        compare=compare,
        output=output,
        verbose=args.verbose,
        show_progress=not args.no_progress,
    )


def render_result(result: ComparisonResult) -> None:
    """Log a human-readable account of a comparison result."""
    if result.has_differences:
        logging.info(
            f"Differences: {len(result.differences)} cell(s) "
            f"in {result.rows_with_differences()} row(s)"
        )
        for record in list(result.difference_records())[:MAX_LOGGED_DIFFERENCES]:
            key = ", ".join(f"{c}={record[c]}" for c in result.identifier_columns)
            logging.info(
                f"  [{key}] {record['column']}: "
                f"{record['value1']!r} -> {record['value2']!r}"
            )
        hidden = len(result.differences) - MAX_LOGGED_DIFFERENCES
        if hidden > 0:
            logging.info(f"  ... and {hidden} more")
    else:
        logging.info("Differences: None")

    for side, columns in ((1, result.orphan_columns1), (2, result.orphan_columns2)):
        listed = ", ".join(columns) if columns else "None"
        logging.info(f"File {side} Extra Columns: {listed}")

    for side, table in ((1, result.orphan_rows1), (2, result.orphan_rows2)):
        if len(table) == 0:
            logging.info(f"File {side} Extra Rows: None")
            continue
        logging.info(f"File {side} Extra Rows: {len(table)}")
        positions = [table.position(c) for c in result.identifier_columns]
        for row in table.rows[:MAX_LOGGED_DIFFERENCES]:
            logging.info("  " + ", ".join(row.values[p] for p in positions))
        if len(table) > MAX_LOGGED_DIFFERENCES:
            logging.info(f"  ... and {len(table) - MAX_LOGGED_DIFFERENCES} more")


async def run_local_compare(
    file1: str,
    file2: str,
    config: RuntimeConfig,
) -> ComparisonResult:
    """
    Compare two local CSV files.

    Args:
        file1: Path to the baseline file
        file2: Path to the file compared against it
        config: Runtime configuration

    Returns:
        The comparison result
    """
    logging.info(f"Comparing files:\n  File 1: {file1}\n  File 2: {file2}")
    start_time = datetime.now()
    compare = config.compare

    table1, table2 = await asyncio.gather(
        read_table_async(file1, max_rows=compare.max_rows),
        read_table_async(file2, max_rows=compare.max_rows),
    )
    logging.info(
        f"Loaded {len(table1)} rows from {os.path.basename(file1)}, "
        f"{len(table2)} rows from {os.path.basename(file2)}"
    )

    engine = ComparisonEngine.from_config(compare)
    progress: Optional[ProgressDisplay] = None
    if config.show_progress:
        progress = ProgressDisplay(label="Comparing")

    try:
        result = await engine.compare_async(
            table1,
            table2,
            compare.identifier_columns,
            compare.exclusion_columns,
            compare.inclusion_columns,
            on_progress=progress.update if progress else None,
        )
    finally:
        if progress:
            progress.finish()

    runtime = (datetime.now() - start_time).total_seconds()

    logging.info(f"\n{'='*60}")
    render_result(result)
    logging.info(f"{'='*60}")

    output = config.output
    output.ensure_directories()
    if output.report_path:
        await write_comparison_results_async(output.report_path, result)
        logging.info(f"Report written to {output.report_path}")

    if output.summary_dir:
        summary = create_summary_structure(result, file1, file2, runtime)
        summary_path = save_summary(output.summary_dir, summary)
        logging.info(f"Summary written to {summary_path}")

    logging.info(f"Runtime: {runtime:.2f}s")
    return result


def run_main(args) -> int:
    """
    Main entry point: run the comparison and map the outcome to an exit status.

    Args:
        args: Parsed command line arguments

    Returns:
        0 if the files reconcile, 1 if anything differs, 2 on error
    """
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s %(levelname)s: %(message)s'
    )

    try:
        config = build_runtime_config(args)
        result = asyncio.run(run_local_compare(args.file1, args.file2, config))
    except (CsvCompareError, OSError) as e:
        logging.error(f"{type(e).__name__}: {e}")
        return EXIT_ERROR

    return EXIT_IDENTICAL if result.is_identical else EXIT_DIFFERENT
