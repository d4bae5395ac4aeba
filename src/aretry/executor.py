r"""Asynchronous retry executor.

This module provides the RetryExecutor class that runs an async
operation with a bounded number of attempts, a jittered delay between
attempts and a pluggable policy deciding which failures are retried.
"""

from __future__ import annotations

__all__ = ["RetryExecutor"]

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from aretry.config import RetryConfig, RetryMessages
from aretry.exceptions import RetryExhaustedError
from aretry.outcome import Failure, Success
from aretry.policy import default_retry_policy
from aretry.scheduler import DelayScheduler
from aretry.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from aretry.outcome import AttemptOutcome
    from aretry.policy import RetryPolicy

T = TypeVar("T")


class RetryExecutor:
    """Executes async operations with automatic retry logic.

    The executor holds the default configuration, retry policy, logger,
    delay scheduler and log messages. Every call to ``execute`` runs one
    strictly sequential attempt loop on an immutable snapshot of the
    configuration, so a single executor can be shared by concurrent
    tasks.

    The retry loop handles:
    - Successful attempts: returns the value immediately
    - Failures accepted by the policy: logs them and retries after a
      jittered delay until the budget is consumed
    - Failures rejected by the policy: logs them and re-raises the
      original error, even if the budget is not consumed

    Note:
        Only ``Exception`` subclasses count as failed attempts.
        ``asyncio.CancelledError`` and other ``BaseException`` signals
        propagate untouched, which lets callers cancel a pending retry
        loop with ``asyncio.wait_for`` or ``Task.cancel``.

    Args:
        config: Default retry configuration. If ``None``, a default
            ``RetryConfig`` is used.
        policy: Default retry policy. If ``None``,
            ``default_retry_policy`` is used.
        logger: Logger receiving the failure messages. If ``None``, the
            ``aretry.executor`` logger is used.
        scheduler: Scheduler computing and performing the delays.
        messages: Log severities and templates.

    Example:
        ```pycon
        >>> import asyncio
        >>> from aretry import RetryConfig, RetryExecutor
        >>> executor = RetryExecutor(RetryConfig(max_retries=5, base_delay_ms=200))
        >>> async def fetch():
        ...     return "payload"
        ...
        >>> asyncio.run(executor.execute(fetch))
        'payload'
        >>> asyncio.run(executor.execute(fetch, max_retries=2))
        'payload'

        ```
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        policy: RetryPolicy | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        scheduler: DelayScheduler | None = None,
        messages: RetryMessages | None = None,
    ) -> None:
        self.config = config if config is not None else RetryConfig()
        self.policy: RetryPolicy = policy if policy is not None else default_retry_policy
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.scheduler = scheduler if scheduler is not None else DelayScheduler()
        self.messages = messages if messages is not None else RetryMessages()

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy | None = None,
        *,
        max_retries: int | None = None,
        base_delay_ms: int | None = None,
        jitter_factor: float | None = None,
    ) -> T:
        """Execute the operation with automatic retry logic.

        Args:
            operation: Zero-argument callable returning an awaitable.
                Use ``functools.partial`` or a lambda to bind arguments.
            policy: Override the executor's retry policy for this call.
                It receives the raw error and returns ``True`` to retry.
            max_retries: Override the maximum number of attempts.
            base_delay_ms: Override the base delay in milliseconds.
            jitter_factor: Override the jitter factor.

        Returns:
            The value returned by the first successful attempt.

        Raises:
            RetryExhaustedError: If every attempt failed with a retryable
                error. The last error is chained as the cause.
            Exception: The original error of the first attempt rejected
                by the policy.
            ValueError: If an override is out of range.
            TypeError: If the ``max_retries`` override is not an integer.
        """
        config = self._resolve_config(
            max_retries=max_retries, base_delay_ms=base_delay_ms, jitter_factor=jitter_factor
        )
        return await self._run(operation, policy if policy is not None else self.policy, config)

    async def execute_outcome(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy | None = None,
        *,
        max_retries: int | None = None,
        base_delay_ms: int | None = None,
        jitter_factor: float | None = None,
    ) -> AttemptOutcome[T]:
        """Execute the operation and return the final outcome instead of
        raising.

        The arguments are the same as ``execute``.

        Returns:
            ``Success`` with the returned value, or ``Failure`` wrapping
            either the original non-retryable error or a
            ``RetryExhaustedError``.

        Raises:
            ValueError: If an override is out of range.
            TypeError: If the ``max_retries`` override is not an integer.
        """
        config = self._resolve_config(
            max_retries=max_retries, base_delay_ms=base_delay_ms, jitter_factor=jitter_factor
        )
        try:
            value = await self._run(operation, policy if policy is not None else self.policy, config)
        except Exception as exc:  # noqa: BLE001
            return Failure(exc)
        return Success(value)

    def _resolve_config(self, **overrides: Any) -> RetryConfig:
        return self.config.merge(**overrides)

    async def _run(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy,
        config: RetryConfig,
    ) -> T:
        attempt = 0
        last_error: Exception | None = None

        while attempt < config.max_retries:
            outcome = await self._attempt(operation)
            if isinstance(outcome, Success):
                return outcome.value

            attempt += 1
            last_error = outcome.error

            if not policy(last_error):
                self._log(
                    self.messages.non_retryable_level,
                    self.messages.non_retryable,
                    attempt=attempt,
                    max_retries=config.max_retries,
                    error=last_error,
                )
                raise last_error

            delay_ms = None
            if attempt < config.max_retries:
                delay_ms = self.scheduler.compute_delay(config.base_delay_ms, config.jitter_factor)
            self._log(
                self.messages.attempt_failed_level,
                self.messages.attempt_failed,
                attempt=attempt,
                max_retries=config.max_retries,
                error=last_error,
                delay_ms=delay_ms,
            )
            if delay_ms is not None:
                await self.scheduler.suspend(delay_ms)

        self._log(
            self.messages.exhausted_level,
            self.messages.exhausted,
            attempt=config.max_retries,
            max_retries=config.max_retries,
            error=last_error,
        )
        raise RetryExhaustedError(config.max_retries, last_error) from last_error

    @staticmethod
    async def _attempt(operation: Callable[[], Awaitable[T]]) -> AttemptOutcome[T]:
        try:
            return Success(await operation())
        except Exception as exc:  # noqa: BLE001
            return Failure(exc)

    def _log(
        self,
        level: int,
        template: str,
        *,
        attempt: int,
        max_retries: int,
        error: Exception,
        delay_ms: float | None = None,
    ) -> None:
        message = template.format(
            attempt=attempt, attempts=attempt, max_retries=max_retries, error=repr(error)
        )
        extra: dict[str, Any] = {
            "attempt": attempt,
            "max_retries": max_retries,
            "error_type": type(error).__name__,
        }
        if delay_ms is not None:
            extra["delay_ms"] = round(delay_ms, 3)
        log_structured(self.logger, level, message, **extra)
