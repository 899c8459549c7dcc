"""
CSV report output.

A comparison report is a single CSV file made of sections. Each section
starts with a title row and sections are separated by an empty row:

    Differences
    <identifier columns...>,Column,File 1 Value,File 2 Value
    ...

    File 1 Extra Columns
    <one column name per row>

    File 2 Extra Columns
    ...

    File 1 Extra Rows
    <file 1 header>
    ...

    File 2 Extra Rows
    <file 2 header>
    ...
"""

import asyncio
import csv
import logging
import os
from typing import Iterable, List

from .result import ComparisonResult
from .table import Table


DIFFERENCES_TITLE = "Differences"
ORPHAN_COLUMNS_TITLES = ("File 1 Extra Columns", "File 2 Extra Columns")
ORPHAN_ROWS_TITLES = ("File 1 Extra Rows", "File 2 Extra Rows")
DIFFERENCE_HEADER = ["Column", "File 1 Value", "File 2 Value"]


def _open_for_write(path):
    return open(path, 'w', encoding='utf-8', newline='')


def _table_rows(table: Table) -> Iterable[List[str]]:
    yield list(table.columns)
    for row in table:
        yield list(row.values)


def comparison_report_rows(result: ComparisonResult) -> Iterable[List[str]]:
    """Yield the rows of a comparison report, section by section."""
    yield [DIFFERENCES_TITLE]
    yield list(result.identifier_columns) + DIFFERENCE_HEADER
    for diff in result.differences:
        yield list(diff.key) + [diff.column, diff.value1, diff.value2]

    for title, columns in zip(
        ORPHAN_COLUMNS_TITLES, (result.orphan_columns1, result.orphan_columns2)
    ):
        yield []
        yield [title]
        for column in columns:
            yield [column]

    for title, table in zip(ORPHAN_ROWS_TITLES, (result.orphan_rows1, result.orphan_rows2)):
        yield []
        yield [title]
        yield from _table_rows(table)


def write_comparison_results(path, result: ComparisonResult) -> str:
    """
    Write a comparison report to a CSV file.

    Args:
        path: Destination file path
        result: Result to serialize

    Returns:
        The path written to
    """
    path = os.fspath(path)
    with _open_for_write(path) as f:
        writer = csv.writer(f)
        writer.writerows(comparison_report_rows(result))

    logging.debug(f"Comparison report written to {path}")
    return path


def write_table(path, table: Table) -> str:
    """Write a table as a plain CSV file with its original column order."""
    path = os.fspath(path)
    with _open_for_write(path) as f:
        csv.writer(f).writerows(_table_rows(table))
    return path


async def write_comparison_results_async(path, result: ComparisonResult) -> str:
    return await asyncio.to_thread(write_comparison_results, path, result)


async def write_table_async(path, table: Table) -> str:
    return await asyncio.to_thread(write_table, path, table)
