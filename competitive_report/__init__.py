"""
Competitive Report - reconciliation and retry scheduling for competitive analysis reports.

This package provides utilities for:
- Merging scenario, competitor and citation fragments into one report document
- Classifying transient upstream errors and scheduling retries with backoff
- Naming report files and notifying Slack when a report is ready
- Common CLI utilities for scripts
"""

import logging

# Set up NullHandler to prevent "No handler found" warnings
# when used as a library. Applications should configure their own handlers.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

# Re-export commonly used items
from competitive_report.config import get_settings, get_slack_webhook_url
from competitive_report.constants import NO_SCENARIOS_PLACEHOLDER, UNKNOWN_COMPANY
from competitive_report.reconcile import ReconcileContext, reconcile
from competitive_report.retry import decide, process_batch

__all__ = [
    "__version__",
    # Config
    "get_settings",
    "get_slack_webhook_url",
    # Constants
    "NO_SCENARIOS_PLACEHOLDER",
    "UNKNOWN_COMPANY",
    # Reconciliation
    "ReconcileContext",
    "reconcile",
    # Retry scheduling
    "decide",
    "process_batch",
]
