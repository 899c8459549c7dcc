"""
In-memory table model.

A Table has a fixed, validated column schema. Rows are read-only mappings
that keep a reference to their owning table, so a row pulled out of one
table can be re-materialized elsewhere without losing column order.
"""

from collections.abc import Mapping
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .errors import SchemaError


class Row(Mapping):
    """
    A single table row, addressed by column name.

    Rows are created by their Table and are never modified afterwards.
    """

    __slots__ = ("_table", "_values")

    def __init__(self, table: "Table", values: Tuple[str, ...]):
        self._table = table
        self._values = values

    @property
    def table(self) -> "Table":
        """The table this row belongs to."""
        return self._table

    @property
    def columns(self) -> Tuple[str, ...]:
        return self._table.columns

    @property
    def values(self) -> Tuple[str, ...]:
        """Row values in column order."""
        return self._values

    def __getitem__(self, column: str) -> str:
        return self._values[self._table.position(column)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table.columns)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return self.columns == other.columns and self._values == other._values
        return Mapping.__eq__(self, other)

    def __hash__(self) -> int:
        return hash((self.columns, self._values))

    def __repr__(self) -> str:
        return f"Row({dict(self)!r})"


class Table:
    """
    Immutable table of string values.

    Args:
        columns: Column names, in order. Must be unique and non-empty.
        rows: Either positional sequences (one value per column) or mappings
            from column name to value. Columns missing from a mapping are
            stored as empty strings.
        name: Optional label, usually the source file name

    Raises:
        SchemaError: On duplicate or empty column names, rows of the wrong
            width, or mappings that reference unknown columns
    """

    def __init__(
        self,
        columns: Iterable[str],
        rows: Iterable[Any] = (),
        name: Optional[str] = None,
    ):
        self._columns: Tuple[str, ...] = tuple(columns)
        self.name = name

        positions: Dict[str, int] = {}
        for index, column in enumerate(self._columns):
            if not isinstance(column, str) or not column:
                raise SchemaError(f"Invalid column name at position {index}: {column!r}")
            if column in positions:
                raise SchemaError(f"Duplicate column name: {column!r}")
            positions[column] = index
        self._positions = positions

        self._rows: Tuple[Row, ...] = tuple(
            Row(self, self._coerce_row(raw, number))
            for number, raw in enumerate(rows, start=1)
        )

    def _coerce_row(self, raw: Any, number: int) -> Tuple[str, ...]:
        if isinstance(raw, Mapping):
            unknown = [k for k in raw if k not in self._positions]
            if unknown:
                raise SchemaError(f"Row {number} has unknown columns: {unknown}")
            return tuple(_as_text(raw.get(c)) for c in self._columns)

        values = tuple(_as_text(v) for v in raw)
        if len(values) != len(self._columns):
            raise SchemaError(
                f"Row {number} has {len(values)} values, "
                f"expected {len(self._columns)}"
            )
        return values

    @classmethod
    def from_rows(
        cls,
        columns: Sequence[str],
        rows: Iterable[Row],
        name: Optional[str] = None,
    ) -> "Table":
        """Build a standalone table from rows that share the given schema."""
        columns = tuple(columns)
        values: List[Tuple[str, ...]] = []
        for row in rows:
            if row.columns != columns:
                raise SchemaError(
                    f"Row schema {list(row.columns)} does not match {list(columns)}"
                )
            values.append(row.values)
        return cls(columns, values, name=name)

    @property
    def columns(self) -> Tuple[str, ...]:
        return self._columns

    @property
    def rows(self) -> Tuple[Row, ...]:
        return self._rows

    def position(self, column: str) -> int:
        """Index of a column in the schema. Raises KeyError if unknown."""
        return self._positions[column]

    def has_column(self, column: str) -> bool:
        return column in self._positions

    def column_values(self, column: str) -> List[str]:
        index = self._positions[column]
        return [row.values[index] for row in self._rows]

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self._rows)

    def __getitem__(self, index: int) -> Row:
        return self._rows[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return self._columns == other._columns and [r.values for r in self._rows] == [
            r.values for r in other._rows
        ]

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        label = f"{self.name!r}, " if self.name else ""
        return f"Table({label}columns={list(self._columns)}, rows={len(self._rows)})"


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
