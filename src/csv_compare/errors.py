"""
Error types raised by CSV Compare.

The comparison engine fails fast and never swallows these; the command line
front end is the single place that turns them into user-facing messages.
"""

from typing import Optional, Sequence, Tuple


class CsvCompareError(Exception):
    """Base class for all CSV Compare errors."""


class ConfigurationError(CsvCompareError, ValueError):
    """Invalid identifier or filter column specification."""


class SchemaError(CsvCompareError, ValueError):
    """A table was built with an invalid column schema or row shape."""


class ParseError(CsvCompareError):
    """A CSV source could not be parsed into a table."""

    def __init__(self, message: str, path: Optional[str] = None, line: Optional[int] = None):
        self.path = path
        self.line = line
        location = ""
        if path is not None:
            location = f"{path}"
            if line is not None:
                location += f":{line}"
            location += ": "
        super().__init__(f"{location}{message}")


class DataConsistencyError(CsvCompareError):
    """
    Two rows on the same side share an identifier key.

    Attributes:
        side: 1 or 2, the table the duplicate was found in
        key: The duplicated identifier values
        rows: 1-based data row numbers of the clashing rows
    """

    def __init__(self, side: int, key: Tuple[str, ...], rows: Sequence[int]):
        self.side = side
        self.key = key
        self.rows = tuple(rows)
        super().__init__(
            f"Duplicate identifier key {key!r} in file {side} "
            f"(rows {', '.join(str(r) for r in self.rows)})"
        )


class ComparisonCancelled(CsvCompareError):
    """The comparison was cancelled before it finished."""
