"""CSV Compare - key-based reconciliation of two CSV datasets."""

from .comparer import ComparisonEngine, compare_tables
from .csv_reader import CsvReader, read_table, read_table_async
from .csv_writer import (
    write_comparison_results,
    write_comparison_results_async,
    write_table,
    write_table_async,
)
from .errors import (
    ComparisonCancelled,
    ConfigurationError,
    CsvCompareError,
    DataConsistencyError,
    ParseError,
    SchemaError,
)
from .result import ComparisonResult, Difference
from .table import Row, Table

__all__ = [
    "ComparisonEngine",
    "compare_tables",
    "CsvReader",
    "read_table",
    "read_table_async",
    "write_comparison_results",
    "write_comparison_results_async",
    "write_table",
    "write_table_async",
    "ComparisonCancelled",
    "ConfigurationError",
    "CsvCompareError",
    "DataConsistencyError",
    "ParseError",
    "SchemaError",
    "ComparisonResult",
    "Difference",
    "Row",
    "Table",
]
