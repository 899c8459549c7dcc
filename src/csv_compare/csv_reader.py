"""
CSV reader that loads a file into a Table.

This module provides a CSV reader that:
- Auto-detects delimiters (comma vs tab) for both header and data
- Handles mixed delimiter files (header with different delimiter than data)
- Detects and handles backslash vs double-quote escaping
- Handles UTF-8 BOM markers
- Rejects malformed input (ragged rows, duplicate headers, bad encoding)
  with a ParseError instead of guessing
"""

import asyncio
import csv
import logging
import os
import sys
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import ParseError
from .table import Table


# Safely set CSV field size limit to handle large fields (e.g., HTML content)
_max_int = sys.maxsize
while True:
    try:
        csv.field_size_limit(_max_int)
        break
    except OverflowError:
        _max_int //= 10


def _field_count(line: str, delimiter: str) -> int:
    """Number of fields a single line splits into under the given delimiter."""
    try:
        return len(next(csv.reader([line], delimiter=delimiter), []))
    except csv.Error:
        return -1


class CsvReader:
    """
    CSV reader with automatic format detection.

    Example:
        >>> reader = CsvReader("before.csv")
        >>> reader.read_headers()
        ['id', 'name', 'price']
        >>> table = reader.read_table()
        >>> table[0]['name']
        'Widget'

    Args:
        file_path: Path to the CSV file
        delimiter: Optional explicit delimiter (auto-detected if not provided)
        max_rows: Optional limit on rows to read
        backslash_escape: Force backslash (True) or standard (False) quote
            escaping; auto-detected when None

    Raises:
        OSError: If the file cannot be opened
        ParseError: If the file is not valid UTF-8
    """

    def __init__(
        self,
        file_path,
        delimiter: Optional[str] = None,
        max_rows: Optional[int] = None,
        backslash_escape: Optional[bool] = None,
    ):
        self.file_path = os.fspath(file_path)
        self.delimiter = delimiter  # Data delimiter
        self.max_rows = max_rows

        # Cached values (populated on first access)
        self._headers: Optional[List[str]] = None
        self._row_count: Optional[int] = None
        self._header_delimiter: Optional[str] = None  # May differ from data delimiter

        # None = auto: backslash mode is only used when the sample looks
        # backslash-escaped AND a standard parse of the file is ragged
        self._uses_backslash_escape: bool = bool(backslash_escape)
        self._backslash_candidate: bool = False
        self._escape_resolved: bool = backslash_escape is not None

        try:
            self._detect_delimiters()
        except UnicodeDecodeError as e:
            raise ParseError(f"File is not valid UTF-8: {e.reason}", self.file_path) from e

    def _detect_delimiters(self) -> None:
        """
        Auto-detect delimiters and escape style by sampling the file.

        Samples the start, middle and end of large files so escape patterns
        that only show up in some rows are still seen.
        """
        if self.delimiter:
            self._header_delimiter = self.delimiter

        with self._open_file() as f:
            first_sample = f.read(32768)
        lines = [line for line in first_sample.split('\n') if line.strip()][:5]

        samples = [first_sample]
        file_size = os.path.getsize(self.file_path)
        if file_size > 100000:
            # Byte offsets may land mid-character, so decode leniently
            with open(self.file_path, 'rb') as raw:
                for offset in (file_size // 2, max(0, file_size - 16384)):
                    raw.seek(offset)
                    raw.readline()  # Skip partial line
                    samples.append(raw.read(16384).decode('utf-8', errors='replace'))

        sample = ''.join(samples)

        if not lines:
            self.delimiter = self.delimiter or ","
            self._header_delimiter = self._header_delimiter or ","
            return

        # Standard CSV escapes quotes as "" ; some exports use \" instead.
        # A quoted value ending in a backslash also contains \" so this is
        # only a hint, confirmed later by _resolve_escape_style.
        if not self._escape_resolved:
            self._backslash_candidate = '\\"' in sample and '""' not in sample

        if self.delimiter:
            self._header_delimiter = self._header_delimiter or self.delimiter
            return

        header = lines[0].rstrip('\r')
        self._header_delimiter = "\t" if header.count("\t") > header.count(",") else ","

        if len(lines) < 2:
            self.delimiter = self._header_delimiter
            return

        # Pick the data delimiter whose parse gives the header's width, so
        # delimiters inside quoted values are not counted
        header_width = _field_count(header, self._header_delimiter)
        data_line = lines[1].rstrip('\r')
        other = "," if self._header_delimiter == "\t" else "\t"
        self.delimiter = self._header_delimiter
        for candidate in (self._header_delimiter, other):
            if _field_count(data_line, candidate) == header_width:
                self.delimiter = candidate
                break

        if self.delimiter != self._header_delimiter:
            logging.warning(
                f"Delimiter mismatch in {os.path.basename(self.file_path)}: "
                f"header uses {repr(self._header_delimiter)}, "
                f"data uses {repr(self.delimiter)}"
            )

    def _parses_cleanly(self) -> bool:
        """True if every data row has as many fields as the header."""
        self._headers = None
        try:
            width = len(self.read_headers())
            return all(len(record) == width for _, record in self._iterate_records())
        except csv.Error:
            return False

    def _resolve_escape_style(self) -> None:
        """
        Settle on standard or backslash escaping before rows are read.

        The standard dialect wins unless it yields ragged rows and the
        backslash dialect does not.
        """
        if self._escape_resolved:
            return
        self._escape_resolved = True
        if not self._backslash_candidate or self._parses_cleanly():
            return

        self._uses_backslash_escape = True
        if self._parses_cleanly():
            self._row_count = None
            logging.debug(
                f"Detected backslash escape mode in {os.path.basename(self.file_path)}"
            )
            return

        self._uses_backslash_escape = False
        self._headers = None

    def _get_csv_params(self) -> dict:
        """Get CSV reader parameters based on detected escape style."""
        params = {'delimiter': self.delimiter}
        if self._uses_backslash_escape:
            params['doublequote'] = False
            params['escapechar'] = '\\'
        return params

    def _open_file(self):
        """Open file with BOM handling."""
        return open(self.file_path, 'r', encoding='utf-8-sig', newline='')

    @staticmethod
    def _normalize_key(key: str) -> str:
        """Normalize a column name by stripping whitespace and quotes."""
        return key.strip().strip('"')

    def read_headers(self) -> List[str]:
        """
        Read and return column headers.

        Headers are cached after the first read. Uses the header-specific
        delimiter, which may differ from the data delimiter.

        Returns:
            List of column names (normalized); empty for an empty file
        """
        if self._headers is not None:
            return self._headers

        with self._open_file() as f:
            header_line = ""
            for line in f:
                if line.strip():
                    header_line = line.rstrip('\r\n')
                    break

        if not header_line:
            self._headers = []
            return self._headers

        params = self._get_csv_params()
        params['delimiter'] = self._header_delimiter
        raw_headers = next(csv.reader([header_line], **params))
        self._headers = [self._normalize_key(k) for k in raw_headers]
        return self._headers

    def _iterate_records(self) -> Iterator[Tuple[int, List[str]]]:
        """Yield (start line, raw field list) for each non-blank data row."""
        rows_yielded = 0

        with self._open_file() as f:
            reader = csv.reader(f, **self._get_csv_params())

            # reader.line_num is where a row ENDS; a row starts right after
            # the previous one ended
            prev_line_end = 0
            header_seen = False

            for record in reader:
                row_start_line = prev_line_end + 1
                prev_line_end = reader.line_num

                if not record or (len(record) == 1 and not record[0].strip()):
                    continue
                if not header_seen:
                    header_seen = True
                    continue
                if self.max_rows is not None and rows_yielded >= self.max_rows:
                    break

                yield row_start_line, record
                rows_yielded += 1

    def iterate_rows(self) -> Iterator[Dict[str, str]]:
        """
        Iterate through rows one at a time.

        Yields:
            Dictionary mapping column names to values for each row
        """
        for _, row in self.iterate_rows_with_line_numbers():
            yield row

    def iterate_rows_with_line_numbers(self) -> Iterator[Tuple[int, Dict[str, str]]]:
        """
        Iterate through rows with their source line numbers.

        Line numbers are 1-indexed and point at the line each row starts on,
        which accounts for multi-line quoted fields.

        Yields:
            Tuple of (line_number, row_dict) for each row
        """
        self._resolve_escape_style()
        headers = self.read_headers()
        for line_num, record in self._iterate_records():
            yield line_num, dict(zip(headers, record))

    def count_rows(self) -> int:
        """
        Count the number of data rows in the file.

        Result is cached after first count. Respects max_rows limit.

        Returns:
            Number of data rows (excluding header)
        """
        if self._row_count is None:
            self._resolve_escape_style()
            self._row_count = sum(1 for _ in self._iterate_records())
        return self._row_count

    def read_table(self) -> Table:
        """
        Load the whole file into a Table.

        Returns:
            Table whose columns follow the header order of the file

        Raises:
            ParseError: On a missing header, duplicate header names, rows whose
                field count differs from the header, or malformed CSV
        """
        name = os.path.basename(self.file_path)
        try:
            self._resolve_escape_style()
            headers = self.read_headers()
            if not headers:
                raise ParseError("No header row found", self.file_path)

            seen = set()
            for column in headers:
                if not column:
                    raise ParseError("Empty column name in header", self.file_path, 1)
                if column in seen:
                    raise ParseError(f"Duplicate column name {column!r} in header", self.file_path, 1)
                seen.add(column)

            rows: List[List[str]] = []
            for line_num, record in self._iterate_records():
                if len(record) != len(headers):
                    raise ParseError(
                        f"Expected {len(headers)} fields, found {len(record)}",
                        self.file_path,
                        line_num,
                    )
                rows.append(record)
        except UnicodeDecodeError as e:
            raise ParseError(f"File is not valid UTF-8: {e.reason}", self.file_path) from e
        except csv.Error as e:
            raise ParseError(f"Malformed CSV: {e}", self.file_path) from e

        logging.debug(f"Read {len(rows)} rows x {len(headers)} columns from {name}")
        self._row_count = len(rows)
        return Table(headers, rows, name=name)

    @property
    def detected_delimiter(self) -> str:
        """Return the detected or configured data delimiter."""
        return self.delimiter

    @property
    def detected_header_delimiter(self) -> str:
        """Return the detected header delimiter."""
        return self._header_delimiter

    @property
    def uses_backslash_escaping(self) -> bool:
        """Return whether file uses backslash escaping."""
        self._resolve_escape_style()
        return self._uses_backslash_escape


def read_table(
    file_path,
    delimiter: Optional[str] = None,
    max_rows: Optional[int] = None,
    backslash_escape: Optional[bool] = None,
) -> Table:
    """Read a CSV file into a Table."""
    reader = CsvReader(
        file_path, delimiter=delimiter, max_rows=max_rows, backslash_escape=backslash_escape
    )
    return reader.read_table()


async def read_table_async(
    file_path,
    delimiter: Optional[str] = None,
    max_rows: Optional[int] = None,
    backslash_escape: Optional[bool] = None,
) -> Table:
    """Read a CSV file into a Table without blocking the event loop."""
    return await asyncio.to_thread(read_table, file_path, delimiter, max_rows, backslash_escape)
