"""
Argument parsing utilities for competitive_report CLI.

Provides standard argument patterns used across scripts.
"""

from pathlib import Path


def add_execute_argument(parser):
    """
    Add standard --execute argument to an ArgumentParser.

    Args:
        parser: argparse.ArgumentParser instance
    """
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Actually execute the operation (default is dry-run)",
    )


def add_input_arguments(parser):
    """
    Add the positional input files and --output option.

    Args:
        parser: argparse.ArgumentParser instance
    """
    parser.add_argument(
        "inputs",
        nargs="+",
        type=Path,
        help="JSON files holding workflow items (a list or a single object)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Where to write the result JSON (default depends on the command)",
    )
