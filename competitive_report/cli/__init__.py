"""
CLI utilities for competitive_report.

This package provides shared functionality for scripts:
- Logging setup
- Argument parsing
- JSON input/output
- Command entry points
"""

from competitive_report.cli.args import add_execute_argument, add_input_arguments
from competitive_report.cli.commands import (
    run_notify_slack,
    run_reconcile_report,
    run_schedule_retries,
)
from competitive_report.cli.io import InputError, load_items, write_json
from competitive_report.cli.logging import (
    print_dry_run_header,
    print_execute_header,
    setup_logging,
)

__all__ = [
    # Logging
    "setup_logging",
    "print_dry_run_header",
    "print_execute_header",
    # Args
    "add_execute_argument",
    "add_input_arguments",
    # I/O
    "InputError",
    "load_items",
    "write_json",
    # Commands
    "run_reconcile_report",
    "run_schedule_retries",
    "run_notify_slack",
]
