r"""Configuration dataclasses and defaults for the retry executor.

This module provides the default retry budget, the transient error
allow-lists used by the default classifier, and the dataclasses that
hold the retry configuration and the log message templates.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_BASE_DELAY_MS",
    "DEFAULT_JITTER_FACTOR",
    "DEFAULT_MAX_RETRIES",
    "RETRY_STATUS_CODES",
    "TRANSIENT_ERROR_CODES",
    "RetryConfig",
    "RetryMessages",
    "validate_retry_params",
]

import logging
import math
from dataclasses import dataclass, replace
from typing import Any

# Default maximum number of attempts, including the first one
DEFAULT_MAX_RETRIES = 3

# Default delay in milliseconds before jitter is added
DEFAULT_BASE_DELAY_MS = 1000

# Default jitter factor
# Delay = base_delay_ms + uniform(0, 1) * jitter_factor * base_delay_ms
# With 0.5 and 1000ms: each wait lasts between 1000ms and 1500ms
DEFAULT_JITTER_FACTOR = 0.5

# Status codes that mark a failure as transient
# 429: Too Many Requests - Rate limiting
# 500: Internal Server Error - Temporary server issue
# 502: Bad Gateway - Upstream server error
# 503: Service Unavailable - Server overloaded or down
# 504: Gateway Timeout - Upstream server timeout
RETRY_STATUS_CODES = (429, 500, 502, 503, 504)

# Error codes and names that mark a failure as transient
TRANSIENT_ERROR_CODES = frozenset(
    {
        # timeouts
        "TimeoutError",
        "ETIMEOUT",
        # connection reset by peer
        "ECONNRESET",
        "ConnectionResetError",
        # connection timed out
        "ETIMEDOUT",
        # temporary DNS failure
        "EAI_AGAIN",
        # host name not found
        "ENOTFOUND",
        "EAI_NONAME",
        # connection refused
        "ECONNREFUSED",
        "ConnectionRefusedError",
        # broken pipe
        "EPIPE",
        "BrokenPipeError",
        # provider throttling
        "Throttling",
        "ThrottlingException",
        "TooManyRequestsException",
        "SlowDown",
        "RequestTimeout",
        "RequestTimeoutException",
    }
)


def validate_retry_params(
    max_retries: int,
    base_delay_ms: float,
    jitter_factor: float,
) -> None:
    """Validate retry parameters.

    Args:
        max_retries: Maximum number of attempts. Must be >= 1.
        base_delay_ms: Base delay in milliseconds between two attempts.
            Must be >= 0.
        jitter_factor: Factor for adding random jitter to the delay.
            Must be >= 0.

    Raises:
        TypeError: If ``max_retries`` is not an integer.
        ValueError: If ``max_retries`` is lower than 1, or if
            ``base_delay_ms`` or ``jitter_factor`` are negative or not
            finite.

    Example:
        ```pycon
        >>> from aretry.config import validate_retry_params
        >>> validate_retry_params(max_retries=3, base_delay_ms=1000, jitter_factor=0.5)
        >>> validate_retry_params(max_retries=0, base_delay_ms=1000, jitter_factor=0.5)
        Traceback (most recent call last):
        ...
        ValueError: max_retries must be >= 1, got 0

        ```
    """
    if not isinstance(max_retries, int) or isinstance(max_retries, bool):
        msg = f"max_retries must be an int, got {type(max_retries).__name__}"
        raise TypeError(msg)
    if max_retries < 1:
        msg = f"max_retries must be >= 1, got {max_retries}"
        raise ValueError(msg)
    if not math.isfinite(base_delay_ms):
        msg = f"base_delay_ms must be finite, got {base_delay_ms}"
        raise ValueError(msg)
    if base_delay_ms < 0:
        msg = f"base_delay_ms must be >= 0, got {base_delay_ms}"
        raise ValueError(msg)
    if not math.isfinite(jitter_factor):
        msg = f"jitter_factor must be finite, got {jitter_factor}"
        raise ValueError(msg)
    if jitter_factor < 0:
        msg = f"jitter_factor must be >= 0, got {jitter_factor}"
        raise ValueError(msg)


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for the retry loop.

    A ``RetryConfig`` is immutable. The executor stores one built at
    construction time and derives a per-call snapshot from it with
    ``merge``.

    Args:
        max_retries: Maximum number of attempts, including the first one.
            Must be >= 1.
        base_delay_ms: Base delay in milliseconds between two attempts.
            Must be >= 0.
        jitter_factor: Factor for adding random jitter to the delay.
            Must be >= 0.

    Example:
        ```pycon
        >>> from aretry.config import RetryConfig
        >>> config = RetryConfig()
        >>> config.max_retries
        3
        >>> merged = config.merge(max_retries=5, jitter_factor=None)
        >>> merged.max_retries, merged.jitter_factor
        (5, 0.5)
        >>> config.max_retries  # Original unchanged
        3

        ```
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay_ms: int = DEFAULT_BASE_DELAY_MS
    jitter_factor: float = DEFAULT_JITTER_FACTOR

    def __post_init__(self) -> None:
        validate_retry_params(
            max_retries=self.max_retries,
            base_delay_ms=self.base_delay_ms,
            jitter_factor=self.jitter_factor,
        )

    def merge(self, **overrides: Any) -> RetryConfig:
        """Create a new config with the given parameters overridden.

        Only non-None values replace the current ones, so unset per-call
        options fall back to the construction-time defaults.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new validated ``RetryConfig``.

        Raises:
            ValueError: If an override is out of range.
            TypeError: If an override does not name a field, or if
                ``max_retries`` is not an integer.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary format.

        Returns:
            Dictionary with the retry parameters.
        """
        return {
            "max_retries": self.max_retries,
            "base_delay_ms": self.base_delay_ms,
            "jitter_factor": self.jitter_factor,
        }


@dataclass(frozen=True)
class RetryMessages:
    """Log severities and message templates used by the executor.

    Templates are rendered with ``str.format`` and may use the fields
    ``attempt``, ``attempts``, ``max_retries`` and ``error``.

    Attributes:
        attempt_failed: Template for a retryable failure of one attempt.
        attempt_failed_level: Log level of ``attempt_failed``.
        non_retryable: Template for a failure rejected by the policy.
        non_retryable_level: Log level of ``non_retryable``.
        exhausted: Template for the aggregate message once the budget is
            consumed.
        exhausted_level: Log level of ``exhausted``.
    """

    attempt_failed: str = "Attempt #{attempt} failed. Error: {error}"
    attempt_failed_level: int = logging.WARNING
    non_retryable: str = "Non-retryable error encountered on attempt #{attempt}. Error: {error}"
    non_retryable_level: int = logging.ERROR
    exhausted: str = "All {attempts} attempts failed. Last error: {error}"
    exhausted_level: int = logging.ERROR
