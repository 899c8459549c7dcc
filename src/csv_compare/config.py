"""
Configuration and constants for CSV Compare.

Defaults live here. Users can drop a local config file (.csv-compare.json)
in the working directory or any parent to override them, e.g.:

    {"identifier": "sku,locale", "exclude": "updated_at", "workers": 4}
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


# ============================================================================
# DEFAULT VALUES
# ============================================================================

# Default identifier column
DEFAULT_IDENTIFIER: str = "id"

# Rows of file 1 matched per batch; cancellation and progress are checked
# between batches
DEFAULT_BATCH_SIZE: int = 10000

# Threads used for row matching (1 = sequential)
DEFAULT_WORKERS: int = 1

# Default directory for timestamped CSV reports
DEFAULT_REPORT_DIR: str = "reports"

# Default directory for JSON summaries
DEFAULT_SUMMARY_DIR: str = "summaries"

# Local config file name (should be gitignored)
LOCAL_CONFIG_FILENAME: str = ".csv-compare.json"


def find_local_config() -> Optional[Path]:
    """
    Search for local config file in current directory and parents.

    Returns:
        Path to config file if found, None otherwise
    """
    current = Path.cwd()

    for directory in [current] + list(current.parents):
        config_path = directory / LOCAL_CONFIG_FILENAME
        if config_path.exists():
            return config_path
        if directory == Path.home():
            break

    return None


def load_local_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from a local .csv-compare.json file.

    Returns:
        Dictionary of configuration values, empty dict if no config found
    """
    if config_path is None:
        config_path = find_local_config()
    if config_path is None:
        return {}

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logging.warning(f"Error loading {config_path}: {e}")
        return {}

    if not isinstance(data, dict):
        logging.warning(f"Ignoring {config_path}: expected a JSON object")
        return {}
    return data


# Load local config once at module import
_LOCAL_CONFIG: Dict[str, Any] = load_local_config()


def get_config_value(key: str, default: Any = None) -> Any:
    """Get a config value, checking local config first."""
    return _LOCAL_CONFIG.get(key, default)


def split_columns(value: Optional[str]) -> List[str]:
    """Split a comma-separated column list, dropping blanks."""
    if not value:
        return []
    return [c.strip() for c in value.split(",") if c.strip()]


@dataclass
class CompareConfig:
    """Column selection and matching options for one comparison."""

    identifier_columns: List[str] = field(default_factory=lambda: [DEFAULT_IDENTIFIER])
    exclusion_columns: List[str] = field(default_factory=list)
    inclusion_columns: List[str] = field(default_factory=list)
    trim_key_whitespace: bool = True
    workers: int = DEFAULT_WORKERS
    batch_size: int = DEFAULT_BATCH_SIZE
    max_rows: Optional[int] = None  # None = no limit

    @classmethod
    def from_column_strings(
        cls,
        identifier: str,
        exclude: Optional[str] = None,
        include: Optional[str] = None,
        **kwargs,
    ) -> "CompareConfig":
        """Create config from comma-separated column strings."""
        return cls(
            identifier_columns=split_columns(identifier),
            exclusion_columns=split_columns(exclude),
            inclusion_columns=split_columns(include),
            **kwargs,
        )


@dataclass
class OutputConfig:
    """Where reports and summaries are written."""

    report_path: Optional[str] = None
    summary_dir: Optional[str] = None

    def ensure_directories(self) -> None:
        """Create output directories if they don't exist."""
        if self.summary_dir:
            os.makedirs(self.summary_dir, exist_ok=True)
        if self.report_path:
            parent = os.path.dirname(os.path.abspath(self.report_path))
            os.makedirs(parent, exist_ok=True)


@dataclass
class RuntimeConfig:
    """Runtime configuration combining all settings."""

    compare: CompareConfig = field(default_factory=CompareConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    verbose: bool = False
    show_progress: bool = True
