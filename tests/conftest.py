"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path

from csv_compare import Table


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def basic_before_csv(fixtures_dir):
    """Path to basic baseline CSV."""
    return fixtures_dir / "basic_before.csv"


@pytest.fixture
def basic_after_csv(fixtures_dir):
    """Path to basic comparison CSV (one extra column, one row swapped)."""
    return fixtures_dir / "basic_after.csv"


@pytest.fixture
def composite_key_before_csv(fixtures_dir):
    """Path to composite key baseline CSV."""
    return fixtures_dir / "composite_key_before.csv"


@pytest.fixture
def composite_key_after_csv(fixtures_dir):
    """Path to composite key comparison CSV."""
    return fixtures_dir / "composite_key_after.csv"


@pytest.fixture
def small_tables():
    """Two in-memory tables: one changed cell, one orphan row each side, one extra column."""
    table1 = Table(
        ["id", "a", "b"],
        [["1", "5", "9"], ["2", "1", "1"], ["3", "x", "y"]],
        name="one.csv",
    )
    table2 = Table(
        ["id", "a", "b", "c"],
        [["1", "5", "10", "n"], ["3", "x", "y", "n"], ["4", "p", "q", "n"]],
        name="two.csv",
    )
    return table1, table2
