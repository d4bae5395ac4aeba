r"""Retry policies deciding whether a failure deserves another attempt.

A retry policy is a plain predicate receiving the raw error raised by
the operation. ``default_retry_policy`` recognizes the usual transient
network, throttling and server-side failures; any other callable with
the same signature can replace it.
"""

from __future__ import annotations

__all__ = [
    "RetryPolicy",
    "TransientErrorClassifier",
    "always_retry",
    "default_retry_policy",
    "extract_error_codes",
    "extract_status_codes",
    "never_retry",
]

import errno
import logging
import socket
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from aretry.config import RETRY_STATUS_CODES, TRANSIENT_ERROR_CODES

logger: logging.Logger = logging.getLogger(__name__)

RetryPolicy = Callable[[BaseException], bool]

# Bound on the number of chained causes inspected for one error
MAX_CAUSE_DEPTH = 10

_STATUS_FIELDS = ("status_code", "status", "statusCode")
_METADATA_STATUS_FIELDS = ("http_status_code", "httpStatusCode", "status_code")

_GAI_ERROR_NAMES = {
    getattr(socket, name): name for name in ("EAI_AGAIN", "EAI_NONAME") if hasattr(socket, name)
}


def _lookup(container: Any, key: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(key)
    return getattr(container, key, None)


def _find_status_code(container: Any, keys: tuple[str, ...]) -> int | None:
    for key in keys:
        value = _lookup(container, key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def extract_status_codes(error: BaseException) -> list[int]:
    """Collect the status codes attached to an error.

    The status code is looked up on the error itself, on a nested
    ``metadata`` value and on a nested ``response`` value. Mappings and
    objects are both supported, which covers ``httpx.HTTPStatusError``
    as well as dictionary-style responses such as botocore's.

    Args:
        error: The error to inspect.

    Returns:
        The status codes found, in lookup order.

    Example:
        ```pycon
        >>> from aretry.policy import extract_status_codes
        >>> class ApiError(Exception):
        ...     def __init__(self, status_code):
        ...         self.status_code = status_code
        ...
        >>> extract_status_codes(ApiError(503))
        [503]
        >>> extract_status_codes(ValueError("invalid"))
        []

        ```
    """
    candidates = [_find_status_code(error, _STATUS_FIELDS)]

    metadata = getattr(error, "metadata", None)
    if metadata is not None:
        candidates.append(_find_status_code(metadata, _METADATA_STATUS_FIELDS))

    response = getattr(error, "response", None)
    if response is not None:
        candidates.append(_find_status_code(response, _STATUS_FIELDS))
        if isinstance(response, Mapping):
            response_metadata = response.get("ResponseMetadata")
            if isinstance(response_metadata, Mapping):
                candidates.append(_find_status_code(response_metadata, ("HTTPStatusCode",)))

    return [code for code in candidates if code is not None]


def extract_error_codes(error: BaseException) -> set[str]:
    """Collect the symbolic codes and names identifying an error.

    Args:
        error: The error to inspect.

    Returns:
        The identifiers of the error: string ``code``, ``error_code``
        and ``name`` attributes, the symbolic name of ``errno``, the
        botocore-style ``response["Error"]["Code"]`` and the class names
        along the error's MRO.

    Example:
        ```pycon
        >>> import errno
        >>> from aretry.policy import extract_error_codes
        >>> "ECONNRESET" in extract_error_codes(OSError(errno.ECONNRESET, "reset"))
        True

        ```
    """
    identifiers = {cls.__name__ for cls in type(error).__mro__}

    for attr in ("code", "error_code", "name"):
        value = getattr(error, attr, None)
        if isinstance(value, str):
            identifiers.add(value)

    errno_value = getattr(error, "errno", None)
    if isinstance(errno_value, int):
        if isinstance(error, socket.gaierror):
            name = _GAI_ERROR_NAMES.get(errno_value)
        else:
            name = errno.errorcode.get(errno_value)
        if name is not None:
            identifiers.add(name)

    response = getattr(error, "response", None)
    if isinstance(response, Mapping):
        error_info = response.get("Error")
        if isinstance(error_info, Mapping) and isinstance(error_info.get("Code"), str):
            identifiers.add(error_info["Code"])

    if isinstance(error, httpx.TimeoutException):
        identifiers.add("TimeoutError")

    return identifiers


@dataclass(frozen=True)
class TransientErrorClassifier:
    """Classify errors as transient based on codes and status codes.

    An error is retryable when one of its identifiers is in
    ``error_codes`` or one of its status codes is in ``status_codes``.
    Errors it was explicitly raised from (``__cause__``) are inspected
    the same way, so a wrapper around a transient error stays
    retryable.

    Args:
        error_codes: The identifiers of transient errors.
        status_codes: The status codes of transient errors.

    Example:
        ```pycon
        >>> from aretry.policy import TransientErrorClassifier
        >>> classifier = TransientErrorClassifier()
        >>> classifier(TimeoutError("read timed out"))
        True
        >>> classifier(ValueError("invalid email"))
        False
        >>> TransientErrorClassifier(status_codes=(409,))(ConnectionResetError())
        True

        ```
    """

    error_codes: frozenset[str] = TRANSIENT_ERROR_CODES
    status_codes: tuple[int, ...] = RETRY_STATUS_CODES

    def __call__(self, error: BaseException) -> bool:
        seen: set[int] = set()
        current: BaseException | None = error
        while current is not None and id(current) not in seen and len(seen) < MAX_CAUSE_DEPTH:
            seen.add(id(current))
            if self.is_transient(current):
                return True
            current = current.__cause__
        return False

    def is_transient(self, error: BaseException) -> bool:
        """Indicate if the error itself, ignoring its causes, is
        transient.

        Args:
            error: The error to classify.

        Returns:
            ``True`` if the error is transient, otherwise ``False``.
        """
        codes = extract_error_codes(error) & self.error_codes
        if codes:
            logger.debug(f"{type(error).__name__} is transient (codes: {sorted(codes)})")
            return True
        for status_code in extract_status_codes(error):
            if status_code in self.status_codes:
                logger.debug(f"{type(error).__name__} is transient (status {status_code})")
                return True
        return False


default_retry_policy: RetryPolicy = TransientErrorClassifier()


def always_retry(error: BaseException) -> bool:  # noqa: ARG001
    r"""Retry policy accepting every error."""
    return True


def never_retry(error: BaseException) -> bool:  # noqa: ARG001
    r"""Retry policy rejecting every error."""
    return False
