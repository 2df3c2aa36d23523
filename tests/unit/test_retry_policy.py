"""
Unit tests for retry policies and backoff delays.
"""

import random

import pytest

from competitive_report.retry.policy import (
    DEFAULT_POLICIES,
    BackoffConfig,
    RetryPolicy,
    StatusClass,
    compute_delay,
)


class TestRetryPolicy:
    """Test RetryPolicy validation and the default table."""

    def test_default_table_covers_transient_statuses(self):
        """Test that exactly the transient statuses are retryable."""
        assert set(DEFAULT_POLICIES) == {429, 502, 503, 504, 529}

    def test_overloaded_policy(self):
        """Test the 529 policy numbers."""
        policy = DEFAULT_POLICIES[529]
        assert policy.status_class == StatusClass.OVERLOADED
        assert policy.backoff_multiplier == 2.5
        assert policy.max_retries == 5

    def test_rate_limit_policy(self):
        """Test the 429 policy numbers."""
        policy = DEFAULT_POLICIES[429]
        assert policy.status_class == StatusClass.RATE_LIMIT
        assert policy.backoff_multiplier == 2.0
        assert policy.max_retries == 3

    def test_multiplier_must_exceed_one(self):
        """Test that a non-growing multiplier is rejected."""
        with pytest.raises(ValueError, match="backoff_multiplier must be > 1.0"):
            RetryPolicy(StatusClass.RATE_LIMIT, 1.0, 3)

    def test_negative_max_retries_rejected(self):
        """Test that negative max_retries is rejected."""
        with pytest.raises(ValueError, match="max_retries must be >= 0"):
            RetryPolicy(StatusClass.RATE_LIMIT, 2.0, -1)


class TestBackoffConfig:
    """Test BackoffConfig validation."""

    def test_defaults(self):
        """Test the default bounds."""
        backoff = BackoffConfig()
        assert backoff.base_delay_ms == 10_000
        assert backoff.max_delay_ms == 300_000
        assert backoff.jitter_ms == 2_000

    def test_max_below_base_rejected(self):
        """Test that the cap cannot be below the base."""
        with pytest.raises(ValueError, match="max_delay_ms"):
            BackoffConfig(base_delay_ms=10_000, max_delay_ms=5_000)

    def test_non_positive_base_rejected(self):
        """Test that the base must be positive."""
        with pytest.raises(ValueError, match="base_delay_ms must be > 0"):
            BackoffConfig(base_delay_ms=0)


class TestComputeDelay:
    """Test compute_delay."""

    def test_first_retry_uses_base_delay(self, zero_jitter):
        """Test that attempt 0 waits the base delay."""
        assert compute_delay(DEFAULT_POLICIES[529], 0, BackoffConfig(), zero_jitter) == 10_000

    def test_exponential_growth(self, zero_jitter):
        """Test base * multiplier ** attempt for 529."""
        backoff = BackoffConfig()
        policy = DEFAULT_POLICIES[529]
        assert compute_delay(policy, 1, backoff, zero_jitter) == 25_000
        assert compute_delay(policy, 2, backoff, zero_jitter) == 62_500
        assert compute_delay(policy, 3, backoff, zero_jitter) == 156_250

    def test_capped_at_max_delay(self, zero_jitter):
        """Test that the exponential part stops at the cap."""
        assert compute_delay(DEFAULT_POLICIES[529], 4, BackoffConfig(), zero_jitter) == 300_000

    def test_monotonic_before_jitter(self, zero_jitter):
        """Test that delays never shrink as attempts grow."""
        backoff = BackoffConfig()
        for policy in DEFAULT_POLICIES.values():
            delays = [compute_delay(policy, a, backoff, zero_jitter) for a in range(8)]
            assert delays == sorted(delays)
            assert max(delays) <= backoff.max_delay_ms

    def test_jitter_within_bounds(self):
        """Test that jitter adds between 0 and jitter_ms."""
        rng = random.Random(42)
        backoff = BackoffConfig()
        for _ in range(200):
            delay = compute_delay(DEFAULT_POLICIES[529], 0, backoff, rng)
            assert 10_000 <= delay <= 12_000

    def test_jitter_added_after_cap(self):
        """Test that jitter can push the delay past the cap."""

        class HalfRandom:
            def random(self):
                return 0.5

        delay = compute_delay(DEFAULT_POLICIES[529], 10, BackoffConfig(), HalfRandom())
        assert delay == 301_000
