"""
Retry scheduling for failed upstream requests.

Items arrive from the workflow either as {"json": payload} envelopes or as
bare payload dicts. A payload carrying an error is classified by HTTP
status; retryable errors come back as a retry record
{"json": {...payload, retryAttempt, retryMetadata, error: None, ...},
"delay": ms}. Everything else, including items whose retries are exhausted,
is passed through unchanged.

Nothing here sleeps or raises on malformed input: the caller owns the
actual waiting, and every decision is logged.
"""

import logging
import random
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from competitive_report.retry.policy import (
    DEFAULT_POLICIES,
    BackoffConfig,
    RetryPolicy,
    compute_delay,
)

logger = logging.getLogger(__name__)

OVERLOADED_STATUS = 529
OVERLOADED_MESSAGE = "The service failed to process your request"

_LEADING_INT = re.compile(r"^\s*(\d+)")


class RetryOutcome(str, Enum):
    """What happened to one item."""

    NO_ERROR = "no_error"
    NOT_RETRYABLE = "not_retryable"
    EXHAUSTED = "exhausted"
    GLOBAL_CAP = "global_cap"
    RETRY = "retry"


@dataclass(frozen=True)
class ErrorDescriptor:
    """Error extracted from an item payload."""

    http_status: int | None
    attempt: int  # retries already consumed
    message: str
    raw: Any = None  # the payload's original error object


@dataclass(frozen=True)
class RetryDecision:
    """Decision for one item and the record to emit for it."""

    outcome: RetryOutcome
    output: Any  # retry record, or the input item unchanged
    error: ErrorDescriptor | None = None
    policy: RetryPolicy | None = None
    delay_ms: int | None = None


@dataclass
class RetryBatchSummary:
    """Counts for one batch."""

    total: int = 0
    retried: int = 0
    no_error: int = 0
    not_retryable: int = 0
    exhausted: int = 0
    global_cap: int = 0

    def record(self, outcome: RetryOutcome) -> None:
        self.total += 1
        if outcome == RetryOutcome.RETRY:
            self.retried += 1
        else:
            setattr(self, outcome.value, getattr(self, outcome.value) + 1)


@dataclass
class RetryBatchResult:
    """Items to emit, in input order, plus the batch summary."""

    items: list[Any] = field(default_factory=list)
    decisions: list[RetryDecision] = field(default_factory=list)
    summary: RetryBatchSummary = field(default_factory=RetryBatchSummary)


def _payload(item: Any) -> dict:
    if isinstance(item, dict):
        inner = item.get("json")
        if isinstance(inner, dict):
            return inner
        return item
    return {}


def parse_status(value: Any) -> int | None:
    """
    Parse an HTTP status that may arrive as int, float or string.

    Leading digits win, so "529 Overloaded" parses as 529.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (OverflowError, ValueError):  # inf / nan
            return None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def parse_attempt(value: Any) -> int:
    """Retries already consumed; anything unusable counts as 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        return max(int(float(value)), 0)
    except (OverflowError, TypeError, ValueError):  # inf / nan / junk
        return 0


def _is_overloaded(error: dict) -> bool:
    description = error.get("description")
    if isinstance(description, str) and "overloaded" in description.lower():
        return True
    message = error.get("message")
    return isinstance(message, str) and OVERLOADED_MESSAGE in message


def classify_error(payload: dict) -> ErrorDescriptor | None:
    """
    Extract the error from an item payload.

    The status comes from error.httpCode, then errorDetails.httpCode. An
    error with no usable status whose description says "Overloaded" (or whose
    message is the provider's generic processing failure) is treated as 529.

    Args:
        payload: Item payload (the "json" part of an envelope)

    Returns:
        ErrorDescriptor, or None if the payload carries no error
    """
    if not isinstance(payload, dict):
        return None
    if not (payload.get("error") or payload.get("errorMessage") or payload.get("errorDetails")):
        return None

    raw_error = payload.get("error")
    error = raw_error if isinstance(raw_error, dict) else {}
    details = payload.get("errorDetails")
    details = details if isinstance(details, dict) else {}

    status = parse_status(error.get("httpCode"))
    if status is None:
        status = parse_status(details.get("httpCode"))
    if status is None and _is_overloaded(error):
        status = OVERLOADED_STATUS

    message = (
        error.get("errorMessage")
        or error.get("message")
        or payload.get("errorMessage")
        or (raw_error if isinstance(raw_error, str) else None)
        or "Unknown error"
    )

    attempt = parse_attempt(payload.get("retryAttempt"))

    return ErrorDescriptor(
        http_status=status, attempt=attempt, message=str(message), raw=raw_error
    )


def _iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def decide(
    item: Any,
    policies: dict[int, RetryPolicy] | None = None,
    backoff: BackoffConfig | None = None,
    rng: random.Random | None = None,
    now: Callable[[], datetime] | None = None,
) -> RetryDecision:
    """
    Decide what to do with a single item, ignoring the batch-wide cap.

    Args:
        item: {"json": payload} envelope or bare payload
        policies: Status code -> RetryPolicy (default: DEFAULT_POLICIES)
        backoff: Delay bounds (default: BackoffConfig())
        rng: Random source for jitter
        now: Clock used for retryTimestamp / estimatedRetryTime

    Returns:
        RetryDecision whose output is either a retry record or the item itself
    """
    policies = DEFAULT_POLICIES if policies is None else policies
    backoff = backoff or BackoffConfig()
    now = now or _utcnow

    payload = _payload(item)
    error = classify_error(payload)
    if error is None:
        return RetryDecision(RetryOutcome.NO_ERROR, item)

    policy = policies.get(error.http_status) if error.http_status is not None else None
    if policy is None:
        logger.info(f"Error is not retryable (HTTP {error.http_status}): {error.message}")
        return RetryDecision(RetryOutcome.NOT_RETRYABLE, item, error=error)

    if error.attempt >= policy.max_retries:
        logger.warning(
            f"Maximum retries exceeded for HTTP {error.http_status} "
            f"({error.attempt}/{policy.max_retries}): {error.message}"
        )
        return RetryDecision(RetryOutcome.EXHAUSTED, item, error=error, policy=policy)

    delay = compute_delay(policy, error.attempt, backoff, rng)
    next_attempt = error.attempt + 1
    scheduled_at = now()
    record = {
        "json": {
            **payload,
            "retryAttempt": next_attempt,
            "retryMetadata": {
                "originalError": error.raw if error.raw is not None else {},
                "httpCode": error.http_status,
                "errorType": policy.status_class.value,
                "attempt": next_attempt,
                "maxRetries": policy.max_retries,
                "retryDelay": delay,
                "retryTimestamp": _iso(scheduled_at),
                "estimatedRetryTime": _iso(scheduled_at + timedelta(milliseconds=delay)),
            },
            "error": None,
            "errorMessage": None,
            "errorDetails": None,
        },
        "delay": delay,
    }
    logger.info(
        f"Retrying HTTP {error.http_status} ({policy.status_class.value}) "
        f"attempt {next_attempt}/{policy.max_retries} in {delay / 1000:.1f}s"
    )
    return RetryDecision(RetryOutcome.RETRY, record, error=error, policy=policy, delay_ms=delay)


def process_batch(
    items: Iterable[Any],
    policies: dict[int, RetryPolicy] | None = None,
    backoff: BackoffConfig | None = None,
    global_max_retries: int | None = None,
    rng: random.Random | None = None,
    now: Callable[[], datetime] | None = None,
) -> RetryBatchResult:
    """
    Run decide() over a batch, enforcing the batch-wide retry ceiling.

    Once global_max_retries retries have been scheduled, further retryable
    items pass through unchanged. Output order matches input order.

    Args:
        items: Workflow items
        policies: Status code -> RetryPolicy (default: DEFAULT_POLICIES)
        backoff: Delay bounds (default: from settings)
        global_max_retries: Batch-wide ceiling (default: from settings)
        rng: Random source for jitter
        now: Clock for retry timestamps

    Returns:
        RetryBatchResult
    """
    if backoff is None or global_max_retries is None:
        from competitive_report.config import get_settings

        settings = get_settings()
        backoff = backoff or BackoffConfig.from_settings(settings)
        if global_max_retries is None:
            global_max_retries = settings.retry_global_max_retries

    result = RetryBatchResult()
    for index, item in enumerate(items):
        decision = decide(item, policies=policies, backoff=backoff, rng=rng, now=now)
        if decision.outcome == RetryOutcome.RETRY and result.summary.retried >= global_max_retries:
            logger.warning(
                f"Global retry cap ({global_max_retries}) reached; "
                f"item {index + 1} passes through without retry"
            )
            decision = RetryDecision(
                RetryOutcome.GLOBAL_CAP, item, error=decision.error, policy=decision.policy
            )
        result.summary.record(decision.outcome)
        result.decisions.append(decision)
        result.items.append(decision.output)

    summary = result.summary
    if summary.retried:
        logger.info(f"{summary.retried} of {summary.total} items scheduled for retry")
    return result
