r"""aretry - Retry executor for asynchronous operations.

This package runs any fallible async operation with a bounded number of
attempts, a randomized backoff between attempts and a pluggable policy
deciding which failures are transient. It is built for the failures of
network calls: timeouts, connection resets, throttling and 5xx
responses, including the errors raised by httpx.

Key Features:
    - Bounded, strictly sequential attempts per call
    - Jittered delay between attempts to avoid synchronized retry storms
    - Non-blocking waits based on asyncio.sleep
    - Default classifier for transient error codes and status codes
      (429, 500, 502, 503, 504)
    - Caller-supplied retry policies receiving the raw error
    - Per-call overrides of the executor's default configuration
    - Configurable log severities and message templates

Example:
    ```pycon
    >>> import asyncio
    >>> from aretry import RetryExecutor
    >>> executor = RetryExecutor()
    >>> async def fetch():
    ...     return {"status": "ok"}
    ...
    >>> asyncio.run(executor.execute(fetch, max_retries=5, base_delay_ms=200))
    {'status': 'ok'}

    ```
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_BASE_DELAY_MS",
    "DEFAULT_JITTER_FACTOR",
    "DEFAULT_MAX_RETRIES",
    "RETRY_STATUS_CODES",
    "TRANSIENT_ERROR_CODES",
    "AttemptOutcome",
    "DelayScheduler",
    "Failure",
    "RetryConfig",
    "RetryError",
    "RetryExecutor",
    "RetryExhaustedError",
    "RetryMessages",
    "RetryPolicy",
    "Success",
    "TransientErrorClassifier",
    "__version__",
    "always_retry",
    "default_retry_policy",
    "never_retry",
]

from importlib.metadata import PackageNotFoundError, version

from aretry.config import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_JITTER_FACTOR,
    DEFAULT_MAX_RETRIES,
    RETRY_STATUS_CODES,
    TRANSIENT_ERROR_CODES,
    RetryConfig,
    RetryMessages,
)
from aretry.exceptions import RetryError, RetryExhaustedError
from aretry.executor import RetryExecutor
from aretry.outcome import AttemptOutcome, Failure, Success
from aretry.policy import (
    RetryPolicy,
    TransientErrorClassifier,
    always_retry,
    default_retry_policy,
    never_retry,
)
from aretry.scheduler import DelayScheduler

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
