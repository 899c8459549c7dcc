"""
Key-based comparison of two tables.

This module matches rows across two tables by an identifier key and reports:
- cells that differ between matched rows, honoring include/exclude filters
- columns present on only one side
- rows whose key has no counterpart on the other side

Rows of table 1 are matched in batches against a read-only index of table 2.
Batches can run on a thread pool; cancellation and progress are checked
between batches.
"""

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .config import DEFAULT_BATCH_SIZE, DEFAULT_WORKERS, CompareConfig
from .errors import ComparisonCancelled, ConfigurationError, DataConsistencyError
from .result import ComparisonResult, Difference
from .table import Row, Table


Key = Tuple[str, ...]
ProgressCallback = Callable[[int, int], None]


class _BatchResult:
    __slots__ = ("differences", "orphans", "matched")

    def __init__(self):
        self.differences: List[Difference] = []
        self.orphans: List[Row] = []
        self.matched: Set[Key] = set()


class ComparisonEngine:
    """
    Compares two tables row by row using an identifier key.

    Example:
        >>> engine = ComparisonEngine()
        >>> result = engine.compare(before, after, ["id"], exclusion_columns=["updated_at"])
        >>> result.has_differences
        True

    Args:
        trim_key_whitespace: Strip leading/trailing whitespace from identifier
            values before matching. Cell values are always compared verbatim.
        workers: Number of threads used to match batches (1 = sequential)
        batch_size: Rows of table 1 per batch
    """

    def __init__(
        self,
        trim_key_whitespace: bool = True,
        workers: int = DEFAULT_WORKERS,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        if workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {workers}")
        if batch_size < 1:
            raise ConfigurationError(f"batch_size must be at least 1, got {batch_size}")
        self.trim_key_whitespace = trim_key_whitespace
        self.workers = workers
        self.batch_size = batch_size

    @classmethod
    def from_config(cls, config: CompareConfig) -> "ComparisonEngine":
        return cls(
            trim_key_whitespace=config.trim_key_whitespace,
            workers=config.workers,
            batch_size=config.batch_size,
        )

    # ------------------------------------------------------------------
    # Configuration checks
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_columns(
        table1: Table,
        table2: Table,
        identifier_columns: Sequence[str],
        exclusion_columns: Sequence[str],
        inclusion_columns: Sequence[str],
    ) -> None:
        if not identifier_columns:
            raise ConfigurationError("At least one identifier column is required")

        repeated = sorted({c for c in identifier_columns if identifier_columns.count(c) > 1})
        if repeated:
            raise ConfigurationError(f"Identifier columns listed more than once: {repeated}")

        if exclusion_columns and inclusion_columns:
            raise ConfigurationError(
                "Exclusion and inclusion columns cannot both be given; "
                "use one or the other"
            )

        for side, table in ((1, table1), (2, table2)):
            missing = [c for c in identifier_columns if not table.has_column(c)]
            if missing:
                raise ConfigurationError(
                    f"Identifier columns {missing} not found in file {side}. "
                    f"Available columns: {list(table.columns)}"
                )

    @staticmethod
    def _select_columns(
        table1: Table,
        table2: Table,
        identifier_columns: Sequence[str],
        exclusion_columns: Sequence[str],
        inclusion_columns: Sequence[str],
    ) -> Tuple[str, ...]:
        """Shared, non-identifier columns that take part in cell comparison."""
        identifiers = set(identifier_columns)
        shared = [c for c in table1.columns if table2.has_column(c) and c not in identifiers]
        shared_set = set(shared)

        if inclusion_columns:
            ignored = [c for c in inclusion_columns if c not in shared_set]
            if ignored:
                logging.debug(f"    Ignoring inclusion columns not shared by both files: {ignored}")
            wanted = set(inclusion_columns)
            return tuple(c for c in shared if c in wanted)

        if exclusion_columns:
            ignored = [c for c in exclusion_columns if c not in shared_set]
            if ignored:
                logging.debug(f"    Ignoring exclusion columns not shared by both files: {ignored}")
            unwanted = set(exclusion_columns)
            return tuple(c for c in shared if c not in unwanted)

        return tuple(shared)

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    def _key_positions(self, table: Table, identifier_columns: Sequence[str]) -> List[int]:
        return [table.position(c) for c in identifier_columns]

    def _make_key(self, row: Row, positions: Sequence[int]) -> Key:
        values = row.values
        if self.trim_key_whitespace:
            return tuple(values[p].strip() for p in positions)
        return tuple(values[p] for p in positions)

    def _build_index(
        self,
        table: Table,
        identifier_columns: Sequence[str],
        side: int,
    ) -> Dict[Key, int]:
        """
        Map each identifier key to its row index.

        Raises:
            DataConsistencyError: If two rows share a key
        """
        positions = self._key_positions(table, identifier_columns)
        index: Dict[Key, int] = {}
        for row_index, row in enumerate(table.rows):
            key = self._make_key(row, positions)
            previous = index.setdefault(key, row_index)
            if previous != row_index:
                raise DataConsistencyError(side, key, (previous + 1, row_index + 1))
        return index

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def _match_batch(
        self,
        batch: Sequence[Tuple[Key, int]],
        table1: Table,
        table2: Table,
        index2: Dict[Key, int],
        identifier_positions: Sequence[int],
        compared: Sequence[Tuple[str, int, int]],
        cancel_event: Optional[threading.Event],
    ) -> _BatchResult:
        if cancel_event is not None and cancel_event.is_set():
            raise ComparisonCancelled("Comparison cancelled")

        out = _BatchResult()
        rows1 = table1.rows
        rows2 = table2.rows

        for key, row_index in batch:
            row1 = rows1[row_index]
            match = index2.get(key)
            if match is None:
                out.orphans.append(row1)
                continue

            out.matched.add(key)
            values1 = row1.values
            values2 = rows2[match].values
            raw_key: Optional[Key] = None
            for column, pos1, pos2 in compared:
                if values1[pos1] != values2[pos2]:
                    if raw_key is None:
                        raw_key = tuple(values1[p] for p in identifier_positions)
                    out.differences.append(
                        Difference(raw_key, column, values1[pos1], values2[pos2])
                    )
        return out

    def _run_batches(
        self,
        batches: List[List[Tuple[Key, int]]],
        match: Callable[[Sequence[Tuple[Key, int]]], _BatchResult],
    ) -> Iterable[_BatchResult]:
        if self.workers == 1 or len(batches) < 2:
            return (match(batch) for batch in batches)
        executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="csv-compare")
        return _ordered_results(executor, match, batches)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compare(
        self,
        table1: Table,
        table2: Table,
        identifier_columns: Sequence[str],
        exclusion_columns: Optional[Sequence[str]] = None,
        inclusion_columns: Optional[Sequence[str]] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ComparisonResult:
        """
        Compare two tables.

        Args:
            table1: Baseline table ("file 1")
            table2: Table compared against the baseline ("file 2")
            identifier_columns: Columns whose values identify a row on both sides
            exclusion_columns: Columns left out of cell comparison
            inclusion_columns: If given, the only columns compared
            cancel_event: Checked before each batch; when set, the comparison
                stops with ComparisonCancelled
            on_progress: Called as ``on_progress(rows_done, rows_total)`` after
                each batch

        Returns:
            ComparisonResult with differences, orphan columns and orphan rows

        Raises:
            ConfigurationError: Invalid identifier or filter columns
            DataConsistencyError: Duplicate identifier key within one table
            ComparisonCancelled: cancel_event was set
        """
        identifier_columns = list(identifier_columns)
        exclusion_columns = list(exclusion_columns or ())
        inclusion_columns = list(inclusion_columns or ())

        self._validate_columns(
            table1, table2, identifier_columns, exclusion_columns, inclusion_columns
        )

        compared_columns = self._select_columns(
            table1, table2, identifier_columns, exclusion_columns, inclusion_columns
        )
        orphan_columns1 = tuple(c for c in table1.columns if not table2.has_column(c))
        orphan_columns2 = tuple(c for c in table2.columns if not table1.has_column(c))

        logging.debug(f"    Identifier column(s): {identifier_columns}")
        logging.debug(f"    Compared columns: {list(compared_columns)}")
        if orphan_columns1 or orphan_columns2:
            logging.debug(
                f"    Orphan columns: file 1 {list(orphan_columns1)}, "
                f"file 2 {list(orphan_columns2)}"
            )

        index1 = self._build_index(table1, identifier_columns, side=1)
        index2 = self._build_index(table2, identifier_columns, side=2)
        logging.debug(f"    Indexed {len(index1)} rows of file 1, {len(index2)} rows of file 2")

        identifier_positions = self._key_positions(table1, identifier_columns)
        compared = [(c, table1.position(c), table2.position(c)) for c in compared_columns]

        keyed_rows = list(index1.items())
        batches = [
            keyed_rows[start:start + self.batch_size]
            for start in range(0, len(keyed_rows), self.batch_size)
        ]

        def match(batch: Sequence[Tuple[Key, int]]) -> _BatchResult:
            return self._match_batch(
                batch, table1, table2, index2,
                identifier_positions, compared, cancel_event,
            )

        if cancel_event is not None and cancel_event.is_set():
            raise ComparisonCancelled("Comparison cancelled")

        differences: List[Difference] = []
        orphan_rows1: List[Row] = []
        remaining = dict(index2)
        rows_done = 0
        total = len(keyed_rows)

        for partial in self._run_batches(batches, match):
            differences.extend(partial.differences)
            orphan_rows1.extend(partial.orphans)
            for key in partial.matched:
                del remaining[key]
            rows_done += len(partial.orphans) + len(partial.matched)
            if on_progress is not None:
                on_progress(rows_done, total)

        # Whatever is left in the index never matched a row of table 1
        orphan_rows2 = [table2.rows[i] for i in remaining.values()]

        result = ComparisonResult(
            identifier_columns=tuple(identifier_columns),
            compared_columns=compared_columns,
            differences=tuple(differences),
            orphan_columns1=orphan_columns1,
            orphan_columns2=orphan_columns2,
            orphan_rows1=Table.from_rows(table1.columns, orphan_rows1, name=table1.name),
            orphan_rows2=Table.from_rows(table2.columns, orphan_rows2, name=table2.name),
            rows1=len(table1),
            rows2=len(table2),
            matched_rows=total - len(orphan_rows1),
        )

        logging.debug(
            f"    Compare complete: {len(differences)} differences, "
            f"{len(orphan_rows1)} file 1 orphans, {len(orphan_rows2)} file 2 orphans"
        )
        return result

    async def compare_async(
        self,
        table1: Table,
        table2: Table,
        identifier_columns: Sequence[str],
        exclusion_columns: Optional[Sequence[str]] = None,
        inclusion_columns: Optional[Sequence[str]] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ComparisonResult:
        """
        Run compare() in a worker thread.

        Cancelling the awaiting task sets the cancel event, so the worker
        stops at the next batch boundary.
        """
        if cancel_event is None:
            cancel_event = threading.Event()
        try:
            return await asyncio.to_thread(
                self.compare,
                table1,
                table2,
                identifier_columns,
                exclusion_columns,
                inclusion_columns,
                cancel_event=cancel_event,
                on_progress=on_progress,
            )
        except asyncio.CancelledError:
            cancel_event.set()
            raise


def _ordered_results(executor, match, batches):
    """Yield batch results in submission order, shutting the pool down after."""
    with executor:
        futures = [executor.submit(match, batch) for batch in batches]
        try:
            for future in futures:
                yield future.result()
        finally:
            for future in futures:
                future.cancel()


def compare_tables(
    table1: Table,
    table2: Table,
    identifier_columns: Sequence[str],
    exclusion_columns: Optional[Sequence[str]] = None,
    inclusion_columns: Optional[Sequence[str]] = None,
    trim_key_whitespace: bool = True,
) -> ComparisonResult:
    """Compare two tables with a default sequential engine."""
    engine = ComparisonEngine(trim_key_whitespace=trim_key_whitespace)
    return engine.compare(table1, table2, identifier_columns, exclusion_columns, inclusion_columns)
