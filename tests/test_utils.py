"""Tests for configuration, summary helpers and the progress display."""

import io
import json
import logging
from datetime import datetime

from csv_compare import Table, compare_tables
from csv_compare.config import CompareConfig, OutputConfig, load_local_config, split_columns
from csv_compare.progress import ProgressDisplay
from csv_compare.utils import create_summary_structure, generate_report_name, save_summary


class TestConfig:
    """Tests for config parsing and the local config file."""

    def test_split_columns(self):
        assert split_columns(" id , sku,,") == ["id", "sku"]
        assert split_columns("") == []
        assert split_columns(None) == []

    def test_from_column_strings(self):
        config = CompareConfig.from_column_strings("sku,locale", exclude="a, b", workers=2)

        assert config.identifier_columns == ["sku", "locale"]
        assert config.exclusion_columns == ["a", "b"]
        assert config.inclusion_columns == []
        assert config.workers == 2

    def test_load_local_config(self, tmp_path):
        path = tmp_path / ".csv-compare.json"
        path.write_text(json.dumps({"identifier": "sku", "workers": 4}))

        assert load_local_config(path) == {"identifier": "sku", "workers": 4}

    def test_load_invalid_local_config(self, tmp_path, caplog):
        path = tmp_path / ".csv-compare.json"
        path.write_text("{not json")

        assert load_local_config(path) == {}
        assert "Error loading" in caplog.text

    def test_non_object_local_config(self, tmp_path):
        path = tmp_path / ".csv-compare.json"
        path.write_text("[1, 2]")

        assert load_local_config(path) == {}

    def test_ensure_directories(self, tmp_path):
        output = OutputConfig(
            report_path=str(tmp_path / "reports" / "r.csv"),
            summary_dir=str(tmp_path / "summaries"),
        )
        output.ensure_directories()

        assert (tmp_path / "reports").is_dir()
        assert (tmp_path / "summaries").is_dir()


class TestSummary:
    """Tests for the JSON summary."""

    def test_generate_report_name(self):
        name = generate_report_name(
            "/data/before.csv", "after.csv", timestamp=datetime(2024, 11, 26, 14, 30, 52)
        )
        assert name == "compare_20241126_143052_before_vs_after.csv"

    def test_summary_structure(self, small_tables):
        table1, table2 = small_tables
        result = compare_tables(table1, table2, ["id"])

        summary = create_summary_structure(result, "x/one.csv", "two.csv", runtime_seconds=1.234)

        assert summary["file1"] == "one.csv"
        assert summary["matched_rows"] == 2
        assert summary["differences_by_column"] == {"b": 1}
        assert summary["file2_only_columns"] == ["c"]
        assert summary["example_keys_file1_only"] == [["2"]]
        assert summary["example_keys_file2_only"] == [["4"]]
        assert summary["runtime_seconds"] == 1.23
        assert summary["identical"] is False

    def test_save_summary(self, tmp_path):
        table = Table(["id"], [["1"]])
        summary = create_summary_structure(compare_tables(table, table, ["id"]))

        path = save_summary(str(tmp_path / "s"), summary, filename="out.json")

        with open(path) as f:
            assert json.load(f)["identical"] is True


class _FakeTty(io.StringIO):
    def isatty(self):
        return True


class TestProgressDisplay:
    """Tests for TTY and log fallback rendering."""

    def test_tty_draws_in_place(self):
        stream = _FakeTty()
        progress = ProgressDisplay(label="Comparing", stream=stream)

        progress.update(50, 100)
        progress.finish()

        output = stream.getvalue()
        assert output.startswith("\rComparing [")
        assert "50/100 (50.0%)" in output
        assert output.endswith("\r\033[2K")

    def test_non_tty_logs(self, caplog):
        caplog.set_level(logging.INFO)
        progress = ProgressDisplay(stream=io.StringIO(), log_interval=3600)

        progress.update(1, 10)
        progress.update(2, 10)
        progress.update(10, 10)

        messages = [r.getMessage() for r in caplog.records]
        assert len(messages) == 2
        assert "1/10" in messages[0]
        assert "10/10 (100.0%)" in messages[1]

    def test_empty_total(self):
        stream = _FakeTty()
        progress = ProgressDisplay(stream=stream)

        progress.update(0, 0)

        assert "0/0 (100.0%)" in stream.getvalue()
