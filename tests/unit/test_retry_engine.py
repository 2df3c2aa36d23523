"""
Unit tests for the retry engine.

Covers error classification, per-item decisions and batch processing.
"""

import copy
import json
import random

from competitive_report.retry.engine import (
    RetryOutcome,
    classify_error,
    decide,
    parse_attempt,
    parse_status,
    process_batch,
)
from competitive_report.retry.policy import BackoffConfig


def _failed_item(http_code, attempt=0, **extra):
    payload = {
        "scenario_id": 3,
        "prompt": "rank competitors",
        "error": {"httpCode": http_code, "errorMessage": "upstream failed"},
        **extra,
    }
    if attempt is not None:
        payload["retryAttempt"] = attempt
    return {"json": payload}


class TestParseStatus:
    """Test parse_status."""

    def test_int_and_float(self):
        """Test numeric statuses."""
        assert parse_status(429) == 429
        assert parse_status(503.0) == 503

    def test_leading_digits(self):
        """Test that text after the code is ignored."""
        assert parse_status("529 Overloaded") == 529
        assert parse_status(" 502") == 502

    def test_unparsable(self):
        """Test that junk yields None."""
        assert parse_status(None) is None
        assert parse_status("Overloaded") is None
        assert parse_status(True) is None
        assert parse_status(float("inf")) is None


class TestClassifyError:
    """Test classify_error."""

    def test_no_error(self):
        """Test that a clean payload has no error."""
        assert classify_error({"scenario_id": 1}) is None

    def test_status_from_error(self):
        """Test error.httpCode."""
        error = classify_error({"error": {"httpCode": "429"}, "retryAttempt": 2})
        assert error.http_status == 429
        assert error.attempt == 2

    def test_status_from_error_details(self):
        """Test errorDetails.httpCode when error has none."""
        error = classify_error({"errorMessage": "boom", "errorDetails": {"httpCode": 503}})
        assert error.http_status == 503
        assert error.message == "boom"

    def test_overloaded_description_means_529(self):
        """Test that an 'Overloaded' description without a code is a 529."""
        error = classify_error({"error": {"description": "Overloaded", "message": "Bad"}})
        assert error.http_status == 529

    def test_provider_processing_message_means_529(self):
        """Test the generic provider failure message."""
        error = classify_error(
            {"error": {"message": "The service failed to process your request"}}
        )
        assert error.http_status == 529

    def test_string_error(self):
        """Test a bare string error."""
        error = classify_error({"error": "socket hang up"})
        assert error.http_status is None
        assert error.message == "socket hang up"

    def test_bad_attempt_counts_as_zero(self):
        """Test that a junk retryAttempt is treated as 0."""
        error = classify_error({"error": {"httpCode": 529}, "retryAttempt": "x"})
        assert error.attempt == 0

    def test_non_finite_attempt_counts_as_zero(self):
        """Test that Infinity and NaN from json.loads do not raise."""
        payload = json.loads('{"error": {"httpCode": 529}, "retryAttempt": Infinity}')
        assert classify_error(payload).attempt == 0
        payload = json.loads('{"error": {"httpCode": 529}, "retryAttempt": NaN}')
        assert classify_error(payload).attempt == 0


def test_parse_attempt():
    """Test attempt parsing for every shape the workflow sends."""
    assert parse_attempt(2) == 2
    assert parse_attempt("3") == 3
    assert parse_attempt(1.9) == 1
    assert parse_attempt(-4) == 0
    assert parse_attempt(None) == 0
    assert parse_attempt(True) == 0
    assert parse_attempt({"n": 1}) == 0
    assert parse_attempt(float("inf")) == 0


class TestDecide:
    """Test decide."""

    def test_no_error_passes_through(self):
        """Test that items without errors are returned as-is."""
        item = {"json": {"scenario_id": 1}}
        decision = decide(item)
        assert decision.outcome == RetryOutcome.NO_ERROR
        assert decision.output is item

    def test_overloaded_first_retry(self, fixed_now):
        """Test a 529 at attempt 0 with seeded jitter."""
        item = _failed_item(529, attempt=0)
        decision = decide(item, backoff=BackoffConfig(), rng=random.Random(7), now=fixed_now)

        assert decision.outcome == RetryOutcome.RETRY
        record = decision.output
        assert 10_000 <= record["delay"] <= 12_000
        assert record["json"]["retryAttempt"] == 1
        assert record["json"]["scenario_id"] == 3
        assert record["json"]["prompt"] == "rank competitors"
        assert record["json"]["error"] is None
        assert record["json"]["errorMessage"] is None
        assert record["json"]["errorDetails"] is None

        metadata = record["json"]["retryMetadata"]
        assert metadata["httpCode"] == 529
        assert metadata["errorType"] == "overloaded"
        assert metadata["attempt"] == 1
        assert metadata["maxRetries"] == 5
        assert metadata["retryDelay"] == record["delay"]
        assert metadata["originalError"] == {
            "httpCode": 529,
            "errorMessage": "upstream failed",
        }

    def test_retry_timestamps(self, fixed_now, zero_jitter):
        """Test retryTimestamp and estimatedRetryTime formatting."""
        decision = decide(_failed_item(529), rng=zero_jitter, now=fixed_now)
        metadata = decision.output["json"]["retryMetadata"]
        assert metadata["retryTimestamp"] == "2025-01-02T03:04:05.678Z"
        assert metadata["estimatedRetryTime"] == "2025-01-02T03:04:15.678Z"

    def test_bare_payload_is_accepted(self, zero_jitter):
        """Test that items without a json envelope still get a retry record."""
        decision = decide(_failed_item(503)["json"], rng=zero_jitter)
        assert decision.outcome == RetryOutcome.RETRY
        assert decision.output["json"]["retryAttempt"] == 1
        assert decision.output["delay"] == 10_000

    def test_exhausted_overloaded_passes_through(self):
        """Test that attempt == maxRetries is never rescheduled."""
        item = _failed_item(529, attempt=5)
        snapshot = copy.deepcopy(item)
        decision = decide(item)
        assert decision.outcome == RetryOutcome.EXHAUSTED
        assert decision.output is item
        assert item == snapshot
        assert "retryMetadata" not in item["json"]

    def test_exhausted_rate_limit_passes_through(self):
        """Test 429 at its limit of 3."""
        item = _failed_item(429, attempt=3)
        decision = decide(item)
        assert decision.outcome == RetryOutcome.EXHAUSTED
        assert decision.output is item

    def test_permanent_error_passes_through(self):
        """Test that a 404 is not retried."""
        item = _failed_item(404)
        decision = decide(item)
        assert decision.outcome == RetryOutcome.NOT_RETRYABLE
        assert decision.output is item

    def test_unknown_status_not_retried(self):
        """Test that an error without a status is not retried."""
        item = {"json": {"error": "socket hang up"}}
        assert decide(item).outcome == RetryOutcome.NOT_RETRYABLE

    def test_input_not_mutated(self, zero_jitter):
        """Test that building the retry record leaves the input alone."""
        item = _failed_item(502, attempt=1)
        snapshot = copy.deepcopy(item)
        decide(item, rng=zero_jitter)
        assert item == snapshot

    def test_later_attempt_grows_delay(self, zero_jitter):
        """Test that attempt 2 of a 503 waits base * 1.5 ** 2."""
        decision = decide(_failed_item(503, attempt=2), rng=zero_jitter)
        assert decision.output["delay"] == 22_500
        assert decision.output["json"]["retryAttempt"] == 3

    def test_non_finite_attempt_is_retried(self, fixed_now):
        """Test that a parsed Infinity retryAttempt is scheduled as a first retry."""
        item = json.loads('{"json": {"error": {"httpCode": 529}, "retryAttempt": Infinity}}')
        decision = decide(item, backoff=BackoffConfig(), rng=random.Random(7), now=fixed_now)
        assert decision.outcome == RetryOutcome.RETRY
        assert decision.output["json"]["retryAttempt"] == 1


class TestProcessBatch:
    """Test process_batch."""

    def test_order_and_summary(self, zero_jitter):
        """Test that outputs follow input order and are counted."""
        items = [
            {"json": {"scenario_id": 1}},
            _failed_item(529),
            _failed_item(404),
            _failed_item(429, attempt=3),
        ]
        result = process_batch(
            items, backoff=BackoffConfig(), global_max_retries=10, rng=zero_jitter
        )

        assert result.items[0] is items[0]
        assert result.items[1]["delay"] == 10_000
        assert result.items[2] is items[2]
        assert result.items[3] is items[3]
        assert result.summary.total == 4
        assert result.summary.retried == 1
        assert result.summary.no_error == 1
        assert result.summary.not_retryable == 1
        assert result.summary.exhausted == 1

    def test_global_cap(self, zero_jitter):
        """Test that retries stop once the batch ceiling is reached."""
        items = [_failed_item(529), _failed_item(503), _failed_item(502)]
        result = process_batch(
            items, backoff=BackoffConfig(), global_max_retries=2, rng=zero_jitter
        )

        outcomes = [d.outcome for d in result.decisions]
        assert outcomes == [RetryOutcome.RETRY, RetryOutcome.RETRY, RetryOutcome.GLOBAL_CAP]
        assert result.items[2] is items[2]
        assert result.summary.global_cap == 1

    def test_defaults_from_settings(self):
        """Test that backoff and cap default to settings values."""
        result = process_batch([_failed_item(529)], rng=random.Random(1))
        assert result.summary.retried == 1
        assert result.items[0]["delay"] >= 1

    def test_empty_batch(self):
        """Test an empty batch."""
        result = process_batch([], backoff=BackoffConfig(), global_max_retries=1)
        assert result.items == []
        assert result.summary.total == 0
