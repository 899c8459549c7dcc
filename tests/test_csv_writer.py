"""Tests for the CSV report writer."""

import asyncio
import csv

from csv_compare import Table, compare_tables, read_table
from csv_compare.csv_writer import (
    comparison_report_rows,
    write_comparison_results,
    write_comparison_results_async,
    write_table,
    write_table_async,
)


def _read_rows(path):
    with open(path, newline='', encoding='utf-8') as f:
        return list(csv.reader(f))


def _sections(rows):
    """Split report rows into {title: body rows} on empty separator rows."""
    sections = {}
    current = []
    for row in rows + [[]]:
        if row:
            current.append(row)
        elif current:
            sections[current[0][0]] = current[1:]
            current = []
    return sections


class TestComparisonReport:
    """Tests for the sectioned comparison report."""

    def test_report_sections(self, tmp_path, basic_before_csv, basic_after_csv):
        table1 = read_table(basic_before_csv)
        table2 = read_table(basic_after_csv)
        result = compare_tables(table1, table2, ["id"], exclusion_columns=["updated_at"])

        path = write_comparison_results(tmp_path / "report.csv", result)
        sections = _sections(_read_rows(path))

        assert sections["Differences"] == [
            ["id", "Column", "File 1 Value", "File 2 Value"],
            ["2", "price", "19.99", "21.99"],
            ["3", "stock", "0", "3"],
        ]
        assert sections["File 2 Extra Columns"] == [["category"]]
        assert sections["File 1 Extra Rows"] == [
            list(table1.columns),
            ["4", "A-4", "Doohickey", "1.00", "7", "2024-01-01"],
        ]
        assert sections["File 2 Extra Rows"] == [
            list(table2.columns),
            ["6", "A-6", "Sprocket", "2.25", "9", "2024-02-01", "parts"],
        ]

    def test_empty_sections_still_present(self, tmp_path):
        """An identical comparison still writes every section title."""
        table = Table(["id", "v"], [["1", "a"]])
        result = compare_tables(table, table, ["id"])

        rows = _read_rows(write_comparison_results(tmp_path / "same.csv", result))
        titles = [row[0] for row in rows if len(row) == 1]

        assert titles == [
            "Differences",
            "File 1 Extra Columns",
            "File 2 Extra Columns",
            "File 1 Extra Rows",
            "File 2 Extra Rows",
        ]

    def test_composite_key_columns(self):
        table1 = Table(["sku", "locale", "price"], [["P-1", "en", "1"]])
        table2 = Table(["sku", "locale", "price"], [["P-1", "en", "2"]])
        result = compare_tables(table1, table2, ["sku", "locale"])

        rows = list(comparison_report_rows(result))

        assert rows[1] == ["sku", "locale", "Column", "File 1 Value", "File 2 Value"]
        assert rows[2] == ["P-1", "en", "price", "1", "2"]

    def test_values_with_delimiters_round_trip(self, tmp_path):
        """Commas, quotes and newlines survive the report."""
        table1 = Table(["id", "text"], [["1", 'say "hi", then\nleave']])
        table2 = Table(["id", "text"], [["1", "bye"]])
        result = compare_tables(table1, table2, ["id"])

        sections = _sections(_read_rows(write_comparison_results(tmp_path / "r.csv", result)))

        assert sections["Differences"][1] == ["1", "text", 'say "hi", then\nleave', "bye"]

    def test_async_writer(self, tmp_path, small_tables):
        table1, table2 = small_tables
        result = compare_tables(table1, table2, ["id"])

        path = asyncio.run(write_comparison_results_async(tmp_path / "async.csv", result))

        assert _sections(_read_rows(path))["File 2 Extra Columns"] == [["c"]]


class TestWriteTable:
    """Tests for exporting orphan tables on their own."""

    def test_write_orphan_table(self, tmp_path, small_tables):
        table1, table2 = small_tables
        result = compare_tables(table1, table2, ["id"])

        path = write_table(tmp_path / "orphans.csv", result.orphan_rows2)

        assert _read_rows(path) == [["id", "a", "b", "c"], ["4", "p", "q", "n"]]
        assert read_table(path) == result.orphan_rows2

    def test_write_table_async(self, tmp_path):
        table = Table(["b", "a"], [["2", "1"]])

        path = asyncio.run(write_table_async(tmp_path / "t.csv", table))

        assert read_table(path).columns == ("b", "a")
