"""Retry policy engine for transient upstream errors."""

from competitive_report.retry.engine import (
    ErrorDescriptor,
    RetryBatchResult,
    RetryBatchSummary,
    RetryDecision,
    RetryOutcome,
    classify_error,
    decide,
    parse_attempt,
    parse_status,
    process_batch,
)
from competitive_report.retry.policy import (
    DEFAULT_POLICIES,
    BackoffConfig,
    RetryPolicy,
    StatusClass,
    compute_delay,
)

__all__ = [
    "DEFAULT_POLICIES",
    "BackoffConfig",
    "ErrorDescriptor",
    "RetryBatchResult",
    "RetryBatchSummary",
    "RetryDecision",
    "RetryOutcome",
    "RetryPolicy",
    "StatusClass",
    "classify_error",
    "compute_delay",
    "decide",
    "parse_attempt",
    "parse_status",
    "process_batch",
]
