"""
Retry policies for transient upstream HTTP errors.

Each retryable status code maps to exactly one RetryPolicy. Status codes
not in the table are treated as permanent failures.
"""

import random
from dataclasses import dataclass
from enum import Enum


class StatusClass(str, Enum):
    """Kind of transient failure a retryable status code represents."""

    RATE_LIMIT = "rate_limit"
    OVERLOADED = "overloaded"
    SERVICE_UNAVAILABLE = "service_unavailable"
    BAD_GATEWAY = "bad_gateway"
    GATEWAY_TIMEOUT = "gateway_timeout"


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff settings for one class of retryable error.

    Args:
        status_class: Which failure this policy handles
        backoff_multiplier: Growth factor per attempt (must be > 1.0)
        max_retries: Retries allowed before the error is terminal (>= 0)
    """

    status_class: StatusClass
    backoff_multiplier: float
    max_retries: int

    def __post_init__(self):
        if self.backoff_multiplier <= 1.0:
            raise ValueError(
                f"backoff_multiplier must be > 1.0, got {self.backoff_multiplier}"
            )
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")


# Status code -> policy
DEFAULT_POLICIES: dict[int, RetryPolicy] = {
    429: RetryPolicy(StatusClass.RATE_LIMIT, 2.0, 3),
    529: RetryPolicy(StatusClass.OVERLOADED, 2.5, 5),
    503: RetryPolicy(StatusClass.SERVICE_UNAVAILABLE, 1.5, 3),
    502: RetryPolicy(StatusClass.BAD_GATEWAY, 1.5, 3),
    504: RetryPolicy(StatusClass.GATEWAY_TIMEOUT, 1.5, 3),
}


@dataclass(frozen=True)
class BackoffConfig:
    """
    Delay bounds shared by all policies (milliseconds).

    delay = min(base * multiplier ** attempt, max_delay) + uniform(0, jitter)
    """

    base_delay_ms: int = 10_000
    max_delay_ms: int = 300_000
    jitter_ms: int = 2_000

    def __post_init__(self):
        if self.base_delay_ms <= 0:
            raise ValueError(f"base_delay_ms must be > 0, got {self.base_delay_ms}")
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError(
                f"max_delay_ms ({self.max_delay_ms}) must be >= base_delay_ms "
                f"({self.base_delay_ms})"
            )
        if self.jitter_ms < 0:
            raise ValueError(f"jitter_ms must be >= 0, got {self.jitter_ms}")

    @classmethod
    def from_settings(cls, settings) -> "BackoffConfig":
        """Build from a competitive_report.config.Settings instance."""
        return cls(
            base_delay_ms=settings.retry_base_delay_ms,
            max_delay_ms=settings.retry_max_delay_ms,
            jitter_ms=settings.retry_jitter_ms,
        )


def compute_delay(
    policy: RetryPolicy,
    attempt: int,
    backoff: BackoffConfig,
    rng: random.Random | None = None,
) -> int:
    """
    Jittered exponential delay before the next retry.

    The exponential part is capped at max_delay_ms; jitter is added after
    the cap, so the result can exceed the cap by up to jitter_ms.

    Args:
        policy: Policy for the error's status class
        attempt: Retries already consumed (0 for the first retry)
        backoff: Delay bounds
        rng: Random source (default: module-level random)

    Returns:
        Delay in whole milliseconds

    Example:
        >>> compute_delay(DEFAULT_POLICIES[529], 0, BackoffConfig(jitter_ms=0))
        10000
    """
    rng = rng or random
    delay = backoff.base_delay_ms * policy.backoff_multiplier ** max(attempt, 0)
    delay = min(delay, backoff.max_delay_ms)
    delay += rng.random() * backoff.jitter_ms
    return round(delay)
