r"""Exceptions raised by the retry executor."""

from __future__ import annotations

__all__ = ["RetryError", "RetryExhaustedError"]


class RetryError(Exception):
    """Base class for errors raised by the retry executor."""


class RetryExhaustedError(RetryError):
    """Raised when every attempt failed with a retryable error.

    The executor raises it ``from`` the last error, so the original
    failure is also available as ``__cause__``.

    Args:
        attempts: The total number of attempts made.
        last_error: The error raised by the last attempt.

    Example:
        ```pycon
        >>> from aretry.exceptions import RetryExhaustedError
        >>> error = RetryExhaustedError(attempts=3, last_error=TimeoutError("slow"))
        >>> str(error)
        'Operation failed after 3 attempts.'
        >>> error.attempts
        3
        >>> error.last_error
        TimeoutError('slow')

        ```
    """

    def __init__(self, attempts: int, last_error: Exception) -> None:
        super().__init__(f"Operation failed after {attempts} attempts.")
        self.attempts = attempts
        self.last_error = last_error

    def __reduce__(self) -> tuple[type[RetryExhaustedError], tuple[int, Exception]]:
        return (type(self), (self.attempts, self.last_error))
