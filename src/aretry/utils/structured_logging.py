r"""Structured logging utilities for machine-readable retry logs.

The executor attaches ``attempt``, ``max_retries``, ``error_type`` and,
when a wait follows, ``delay_ms`` to every record it emits. This module
renders such records as JSON lines and tags them with a correlation id
so the attempts of one retry sequence can be grouped by a log
aggregator.

Structured logging is opt-in:

```python
import logging
from aretry.utils.structured_logging import StructuredFormatter, set_correlation_id

handler = logging.StreamHandler()
handler.setFormatter(StructuredFormatter())
logging.getLogger("aretry").addHandler(handler)

set_correlation_id("job-42")
```
"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
]

import contextvars
import json
import logging
import time
from typing import Any

# Context variable for correlation ID (task-local under asyncio)
_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

# Attributes present on every LogRecord, everything else came from ``extra``
_RECORD_ATTRIBUTES = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "msecs",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "sinfo",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "taskName",
    }
)


def get_correlation_id() -> str | None:
    """Get the current correlation ID.

    Returns:
        The current correlation ID, or None if not set.
    """
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context.

    The value lives in a context variable, so each asyncio task sees the
    id set in its own context.

    Args:
        correlation_id: The correlation ID to set (e.g., job ID, trace ID).

    Example:
        ```pycon
        >>> from aretry.utils.structured_logging import (
        ...     clear_correlation_id,
        ...     get_correlation_id,
        ...     set_correlation_id,
        ... )
        >>> set_correlation_id("job-42")
        >>> get_correlation_id()
        'job-42'
        >>> clear_correlation_id()
        >>> get_correlation_id()

        ```
    """
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID for the current context."""
    _correlation_id.set(None)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Standard fields in the JSON output:
        - timestamp: ISO 8601 timestamp
        - level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        - logger: Logger name
        - message: Log message
        - correlation_id: Optional correlation ID
        - module, function, line: Origin of the log call

    Fields passed through ``extra`` (``attempt``, ``delay_ms``, ...) are
    copied as-is. Values that are not JSON serializable are rendered
    with ``repr``.

    Example:
        ```pycon
        >>> import json
        >>> import logging
        >>> from aretry.utils.structured_logging import StructuredFormatter
        >>> record = logging.LogRecord(
        ...     "aretry.executor", logging.WARNING, "executor.py", 1, "Attempt #1 failed", None, None
        ... )
        >>> record.attempt = 1
        >>> data = json.loads(StructuredFormatter().format(record))
        >>> data["level"], data["message"], data["attempt"]
        ('WARNING', 'Attempt #1 failed', 1)

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON.

        Args:
            record: The log record to format.

        Returns:
            JSON-formatted log string.
        """
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = get_correlation_id()
        if correlation_id is not None:
            log_data["correlation_id"] = correlation_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_data[key] = value

        return json.dumps(log_data, default=repr)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: ARG002
        """Format timestamp as ISO 8601 with millisecond precision.

        Args:
            record: The log record.
            datefmt: Ignored, the output is always ISO 8601.

        Returns:
            ISO 8601 formatted timestamp.
        """
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """Log a message with structured data.

    Args:
        logger: Logger to use.
        level: Log level (e.g., logging.INFO).
        message: Log message.
        **extra: Additional structured fields to include in the log.
    """
    logger.log(level, message, extra=extra)
