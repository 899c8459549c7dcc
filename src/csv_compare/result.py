"""
Comparison result value objects.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterator, Tuple

from .table import Table


@dataclass(frozen=True)
class Difference:
    """One cell that differs between two matched rows."""

    key: Tuple[str, ...]
    column: str
    value1: str
    value2: str


@dataclass(frozen=True)
class ComparisonResult:
    """
    Outcome of comparing two tables.

    Orphan rows are held as standalone tables that keep the full column
    schema of the table they came from, even when no rows are orphaned.
    """

    identifier_columns: Tuple[str, ...]
    compared_columns: Tuple[str, ...]
    differences: Tuple[Difference, ...]
    orphan_columns1: Tuple[str, ...]
    orphan_columns2: Tuple[str, ...]
    orphan_rows1: Table
    orphan_rows2: Table
    rows1: int = 0
    rows2: int = 0
    matched_rows: int = 0

    @property
    def has_differences(self) -> bool:
        return bool(self.differences)

    @property
    def has_orphan_columns(self) -> bool:
        return bool(self.orphan_columns1 or self.orphan_columns2)

    @property
    def has_orphan_rows(self) -> bool:
        return bool(len(self.orphan_rows1) or len(self.orphan_rows2))

    @property
    def is_identical(self) -> bool:
        """True when nothing differs, nothing is orphaned."""
        return not (self.has_differences or self.has_orphan_columns or self.has_orphan_rows)

    def difference_records(self) -> Iterator[Dict[str, str]]:
        """
        Yield each difference as a flat dict.

        Keys are the identifier columns followed by ``column``, ``value1``
        and ``value2``.
        """
        for diff in self.differences:
            record = dict(zip(self.identifier_columns, diff.key))
            record["column"] = diff.column
            record["value1"] = diff.value1
            record["value2"] = diff.value2
            yield record

    def differences_by_column(self) -> Dict[str, int]:
        """Number of differing cells per compared column."""
        counts = Counter(d.column for d in self.differences)
        return {c: counts[c] for c in self.compared_columns if counts[c]}

    def rows_with_differences(self) -> int:
        return len({d.key for d in self.differences})
