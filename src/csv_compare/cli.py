"""
Command-line interface for CSV Compare.

Provides argument parsing and CLI entry point.
"""

import argparse
import sys

from .config import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_IDENTIFIER,
    DEFAULT_REPORT_DIR,
    DEFAULT_SUMMARY_DIR,
    DEFAULT_WORKERS,
    get_config_value,
)


BANNER = r"""
┌──────────────────────────────────────────────────────────────────────────────┐
│                                                                              │
│                          C S V    C O M P A R E                              │
│                                                                              │
│              key-based reconciliation of two CSV snapshots                   │
│                                                                              │
└──────────────────────────────────────────────────────────────────────────────┘
"""


class CustomHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Wider help columns, option strings listed once."""

    def __init__(self, prog, indent_increment=2, max_help_position=40, width=100):
        super().__init__(prog, indent_increment, max_help_position, width)

    def _format_action_invocation(self, action):
        if not action.option_strings:
            return super()._format_action_invocation(action)
        return ', '.join(action.option_strings)


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser.

    Defaults come from .csv-compare.json when present.

    Returns:
        Configured ArgumentParser instance
    """
    description = f"""{BANNER}
  Match rows of two CSV files by an identifier key and report:

    • cells that differ between matched rows
    • columns that exist in only one file
    • rows whose key exists in only one file
"""

    epilog = """
┌─────────────────────────────────────────────────────────────────────────────┐
│  EXAMPLES                                                                   │
└─────────────────────────────────────────────────────────────────────────────┘

  Compare two exports by id:
    %(prog)s before.csv after.csv

  Composite key, ignoring a timestamp column, with a CSV report:
    %(prog)s before.csv after.csv -k "sku,locale" -x updated_at -o report.csv

  Only compare price and stock:
    %(prog)s before.csv after.csv -k sku -i "price,stock"

  Timestamped report in ./reports and a JSON summary in ./summaries:
    %(prog)s before.csv after.csv --report-dir -s

┌─────────────────────────────────────────────────────────────────────────────┐
│  EXIT STATUS                                                                │
└─────────────────────────────────────────────────────────────────────────────┘

  0  files reconcile      1  differences or orphans found      2  error
"""

    parser = argparse.ArgumentParser(
        prog='csv-compare',
        description=description,
        epilog=epilog,
        formatter_class=CustomHelpFormatter,
    )

    parser.add_argument('file1', metavar='FILE1', help='Baseline CSV file')
    parser.add_argument('file2', metavar='FILE2', help='CSV file compared against FILE1')

    columns_group = parser.add_argument_group(
        'Columns',
        'Which columns identify rows and which are compared'
    )
    columns_group.add_argument(
        '--identifier', '-k',
        type=str,
        default=get_config_value('identifier', DEFAULT_IDENTIFIER),
        metavar='COLS',
        help=f'Identifier column(s) for row matching.\n'
             f'Comma-separated for composite keys.\n'
             f'(default: {DEFAULT_IDENTIFIER})'
    )
    filters = columns_group.add_mutually_exclusive_group()
    filters.add_argument(
        '--exclude', '-x',
        type=str,
        default=get_config_value('exclude', ''),
        metavar='COLS',
        help='Comma-separated columns left out of comparison.'
    )
    filters.add_argument(
        '--include', '-i',
        type=str,
        default=get_config_value('include', ''),
        metavar='COLS',
        help='Comma-separated columns to compare;\n'
             'all other columns are ignored.'
    )

    matching_group = parser.add_argument_group('Matching')
    matching_group.add_argument(
        '--no-trim-keys',
        action='store_true',
        default=not get_config_value('trim_keys', True),
        help='Match identifier values exactly, without\n'
             'stripping surrounding whitespace.'
    )
    matching_group.add_argument(
        '--workers', '-w',
        type=int,
        default=get_config_value('workers', DEFAULT_WORKERS),
        metavar='NUM',
        help=f'Threads used for row matching.\n(default: {DEFAULT_WORKERS})'
    )
    matching_group.add_argument(
        '--batch-size', '-b',
        type=int,
        default=get_config_value('batch_size', DEFAULT_BATCH_SIZE),
        metavar='NUM',
        help=f'Rows matched per batch.\n(default: {DEFAULT_BATCH_SIZE})'
    )
    matching_group.add_argument(
        '--max-rows', '-r',
        type=int,
        default=None,
        metavar='NUM',
        dest='max_rows',
        help='Read at most NUM rows from each file.\n'
             'Useful for quick checks on large files.'
    )

    output_group = parser.add_argument_group('Output')
    report_target = output_group.add_mutually_exclusive_group()
    report_target.add_argument(
        '--output', '-o',
        type=str,
        default='',
        metavar='FILE',
        help='Write a CSV report of the comparison.'
    )
    report_target.add_argument(
        '--report-dir',
        type=str,
        nargs='?',
        const=DEFAULT_REPORT_DIR,
        default=get_config_value('report_dir', ''),
        metavar='DIR',
        help=f'Write a timestamped CSV report into DIR.\n'
             f'(DIR defaults to {DEFAULT_REPORT_DIR})'
    )
    output_group.add_argument(
        '--summary-dir', '-s',
        type=str,
        nargs='?',
        const=DEFAULT_SUMMARY_DIR,
        default=get_config_value('summary_dir', ''),
        metavar='DIR',
        help=f'Write a JSON summary into DIR.\n'
             f'(DIR defaults to {DEFAULT_SUMMARY_DIR})'
    )
    output_group.add_argument(
        '--no-progress',
        action='store_true',
        help='Do not show the progress bar.'
    )
    output_group.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug output.'
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    from .main import run_main

    parser = create_parser()
    args = parser.parse_args(argv)
    sys.exit(run_main(args))


if __name__ == "__main__":
    main()
