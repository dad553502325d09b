"""Retry policy for Lichess API calls: backoff delays and Retry-After handling."""

import random
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

from tenacity import RetryCallState
from tenacity.wait import wait_base

from .config import get_settings
from .errors import RateLimitError


def parse_retry_after(header_value: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header (delta-seconds or HTTP-date).

    Args:
        header_value: Value of the Retry-After header

    Returns:
        Seconds to wait, or None if the header is absent or unparseable
    """
    if header_value is None or not header_value.strip():
        return None

    try:
        return max(0.0, float(int(header_value.strip())))
    except ValueError:
        pass

    try:
        retry_time = parsedate_to_datetime(header_value)
    except (TypeError, ValueError):
        return None
    if retry_time.tzinfo is None:
        retry_time = retry_time.replace(tzinfo=timezone.utc)
    delta = retry_time - datetime.now(timezone.utc)
    return max(0.0, delta.total_seconds())


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior. All durations in seconds."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    jitter: float = 1.0

    @classmethod
    def from_settings(cls) -> "RetryConfig":
        settings = get_settings()
        return cls(
            max_retries=settings.RETRY_MAX,
            base_delay=settings.RETRY_BASE_DELAY_S,
            max_delay=settings.RETRY_MAX_DELAY_S,
            jitter=settings.RETRY_JITTER_S,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def backoff_delay(self, attempt: int) -> float:
        """Delay after a failed zero-based ``attempt``: exponential plus jitter, capped."""
        delay = self.base_delay * (2 ** attempt) + random.uniform(0, self.jitter)
        return min(delay, self.max_delay)


class wait_rate_limit_or_backoff(wait_base):
    """Tenacity wait strategy with two policies.

    A ``RateLimitError`` waits exactly the server-suggested delay; anything
    else waits the exponential backoff for the attempt that just failed.
    """

    def __init__(self, config: RetryConfig) -> None:
        self.config = config

    def __call__(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None else None
        if isinstance(error, RateLimitError):
            return error.retry_after
        return self.config.backoff_delay(retry_state.attempt_number - 1)
