"""Tests for CsvReader."""

import asyncio
import os
import tempfile

import pytest

from csv_compare import ParseError, Table
from csv_compare.csv_reader import CsvReader, read_table, read_table_async


def _write_temp(content, mode='w', suffix='.csv'):
    with tempfile.NamedTemporaryFile(mode=mode, suffix=suffix, delete=False) as f:
        f.write(content)
    return f.name


class TestCsvReader:
    """Tests for format detection and row iteration."""

    def test_read_simple_csv(self):
        """Test reading a simple CSV file."""
        path = _write_temp("id,name,price\n1,Widget,9.99\n2,Gadget,19.99\n")

        try:
            reader = CsvReader(path)
            assert reader.read_headers() == ['id', 'name', 'price']

            rows = list(reader.iterate_rows())
            assert len(rows) == 2
            assert rows[0] == {'id': '1', 'name': 'Widget', 'price': '9.99'}
            assert rows[1] == {'id': '2', 'name': 'Gadget', 'price': '19.99'}
        finally:
            os.unlink(path)

    def test_detect_tab_delimiter(self, fixtures_dir):
        """Test auto-detection of tab delimiter."""
        reader = CsvReader(fixtures_dir / "tab_delimited.csv")
        assert reader.detected_delimiter == '\t'

        rows = list(reader.iterate_rows())
        assert rows[0]['name'] == 'Widget'

    def test_max_rows_limit(self):
        """Test row limiting."""
        path = _write_temp("id,value\n" + "".join(f"{i},{i*10}\n" for i in range(100)))

        try:
            reader = CsvReader(path, max_rows=5)
            assert len(list(reader.iterate_rows())) == 5
            assert reader.count_rows() == 5
            assert len(reader.read_table()) == 5
        finally:
            os.unlink(path)

    def test_count_rows_cached(self):
        """Test that row count is cached."""
        path = _write_temp("id\n1\n2\n3\n")

        try:
            reader = CsvReader(path)
            assert reader.count_rows() == reader.count_rows() == 3
        finally:
            os.unlink(path)

    def test_iterate_with_line_numbers(self):
        """Test iteration with line numbers, including multi-line fields."""
        path = _write_temp('id,value\na,"multi\nline"\nb,2\n')

        try:
            reader = CsvReader(path)
            rows_with_lines = list(reader.iterate_rows_with_line_numbers())

            assert [line for line, _ in rows_with_lines] == [2, 4]
        finally:
            os.unlink(path)

    def test_handle_quoted_fields(self):
        """Test handling of quoted fields with commas and newlines."""
        path = _write_temp('id,description\n1,"Hello, World"\n2,"Line 1\nLine 2"\n')

        try:
            rows = list(CsvReader(path).iterate_rows())

            assert rows[0]['description'] == 'Hello, World'
            assert rows[1]['description'] == 'Line 1\nLine 2'
        finally:
            os.unlink(path)

    def test_handle_utf8_bom(self):
        """Test that a UTF-8 BOM is stripped from the first header."""
        path = _write_temp(b'\xef\xbb\xbfid,name\n1,Test\n', mode='wb')

        try:
            assert CsvReader(path).read_headers()[0] == 'id'
        finally:
            os.unlink(path)

    def test_normalize_headers(self):
        """Test header normalization (whitespace and quotes)."""
        path = _write_temp('"id" , "name" , price \n1,Test,9.99\n')

        try:
            headers = CsvReader(path).read_headers()
            assert headers == ['id', 'name', 'price']
        finally:
            os.unlink(path)

    def test_backslash_escaping(self):
        """Test detection of backslash-escaped quotes that break a standard parse."""
        path = _write_temp('id,html\n1,"a \\"quoted, value\\""\n2,plain\n')

        try:
            reader = CsvReader(path)
            rows = list(reader.iterate_rows())
            assert reader.uses_backslash_escaping
            assert rows[0]['html'] == 'a "quoted, value"'
            assert rows[1]['html'] == 'plain'
            assert reader.count_rows() == 2
        finally:
            os.unlink(path)

    def test_trailing_backslash_is_standard_csv(self):
        """Test that a quoted value ending in a backslash does not swallow the next row."""
        path = _write_temp('id,path\n1,"C:\\dir\\"\n2,x\n')

        try:
            reader = CsvReader(path)
            table = reader.read_table()
            assert not reader.uses_backslash_escaping
            assert len(table) == 2
            assert table[0]['path'] == 'C:\\dir\\'
            assert table[1]['id'] == '2'
        finally:
            os.unlink(path)

    def test_forced_backslash_escaping(self):
        """Test explicitly requesting backslash escaping."""
        path = _write_temp('id,html\n1,"<a href=\\"x\\">link</a>"\n')

        try:
            table = read_table(path, backslash_escape=True)
            assert table[0]['html'] == '<a href="x">link</a>'

            reader = CsvReader(path, backslash_escape=False)
            assert not reader.uses_backslash_escaping
        finally:
            os.unlink(path)

    def test_quoted_tabs_keep_comma_delimiter(self, caplog):
        """Test that tabs inside quoted values do not win delimiter detection."""
        path = _write_temp('id,note\n1,"a\t\tb"\n2,plain\n')

        try:
            reader = CsvReader(path)
            assert reader.detected_delimiter == ','
            assert reader.detected_header_delimiter == ','

            table = reader.read_table()
            assert table[0]['note'] == 'a\t\tb'
            assert table[1]['note'] == 'plain'
            assert "Delimiter mismatch" not in caplog.text
        finally:
            os.unlink(path)

    def test_mixed_header_and_data_delimiters(self, caplog):
        """Test a comma header over tab-separated data."""
        path = _write_temp('id,name\n1\tWidget\n2\tGadget\n')

        try:
            reader = CsvReader(path)
            assert reader.detected_header_delimiter == ','
            assert reader.detected_delimiter == '\t'
            assert "Delimiter mismatch" in caplog.text

            rows = list(reader.iterate_rows())
            assert rows[1] == {'id': '2', 'name': 'Gadget'}
        finally:
            os.unlink(path)

    def test_empty_file(self):
        """Test that iterating an empty file yields nothing."""
        path = _write_temp("")

        try:
            reader = CsvReader(path)
            assert list(reader.iterate_rows()) == []
            assert reader.read_headers() == []
        finally:
            os.unlink(path)

    def test_header_only_file(self):
        """Test file with only headers."""
        path = _write_temp("id,name,price\n")

        try:
            reader = CsvReader(path)
            assert reader.read_headers() == ['id', 'name', 'price']
            assert list(reader.iterate_rows()) == []
            assert reader.count_rows() == 0
        finally:
            os.unlink(path)


class TestReadTable:
    """Tests for loading files into tables and rejecting malformed input."""

    def test_read_table_keeps_header_order(self, basic_after_csv):
        """Test that table columns follow the file header order."""
        table = read_table(basic_after_csv)

        assert isinstance(table, Table)
        assert table.columns == ("id", "sku", "title", "price", "stock", "updated_at", "category")
        assert len(table) == 5
        assert table[2]["title"] == "Thing, Large"
        assert table.name == "basic_after.csv"

    def test_blank_lines_skipped(self):
        path = _write_temp("id,name\n1,a\n\n2,b\n\n")

        try:
            table = read_table(path)
            assert table.column_values("id") == ["1", "2"]
        finally:
            os.unlink(path)

    def test_crlf_line_endings(self):
        path = _write_temp(b"id,name\r\n1,a\r\n2,b\r\n", mode='wb')

        try:
            table = read_table(path)
            assert table.columns == ("id", "name")
            assert table[1]["name"] == "b"
        finally:
            os.unlink(path)

    def test_inconsistent_field_count(self):
        """Test that a ragged row is a parse error pointing at its line."""
        path = _write_temp("id,name\n1,a\n2,b,extra\n")

        try:
            with pytest.raises(ParseError) as exc_info:
                read_table(path)
            assert exc_info.value.line == 3
            assert "Expected 2 fields, found 3" in str(exc_info.value)
        finally:
            os.unlink(path)

    def test_duplicate_header(self):
        """Test that duplicate header names are rejected by the reader."""
        path = _write_temp("id,name,name\n1,a,b\n")

        try:
            with pytest.raises(ParseError) as exc_info:
                read_table(path)
            assert "Duplicate column name 'name'" in str(exc_info.value)
        finally:
            os.unlink(path)

    def test_empty_file_has_no_header(self):
        path = _write_temp("")

        try:
            with pytest.raises(ParseError) as exc_info:
                read_table(path)
            assert "No header row" in str(exc_info.value)
        finally:
            os.unlink(path)

    def test_invalid_encoding(self):
        """Test that undecodable bytes become a ParseError."""
        path = _write_temp(b"id,name\n1,\xff\xfe\xfa\n", mode='wb')

        try:
            with pytest.raises(ParseError) as exc_info:
                read_table(path)
            assert "UTF-8" in str(exc_info.value)
        finally:
            os.unlink(path)

    def test_missing_file_raises_os_error(self, tmp_path):
        """Test that I/O errors surface unchanged."""
        with pytest.raises(FileNotFoundError):
            read_table(tmp_path / "nope.csv")

    def test_read_table_async(self, composite_key_before_csv):
        table = asyncio.run(read_table_async(composite_key_before_csv))

        assert table.columns == ("sku", "locale", "name", "price")
        assert len(table) == 4
