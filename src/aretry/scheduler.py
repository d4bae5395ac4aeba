r"""Jittered delay computation and non-blocking waits between attempts."""

from __future__ import annotations

__all__ = ["DelayScheduler"]

import asyncio
import logging
import random

logger: logging.Logger = logging.getLogger(__name__)


class DelayScheduler:
    """Compute the wait before the next attempt and perform it.

    The scheduler is stateless and can be shared by concurrent retry
    loops.

    Example:
        ```pycon
        >>> from aretry.scheduler import DelayScheduler
        >>> scheduler = DelayScheduler()
        >>> scheduler.compute_delay(base_delay_ms=1000, jitter_factor=0.0)
        1000.0
        >>> 1000 <= scheduler.compute_delay(base_delay_ms=1000, jitter_factor=0.5) <= 1500
        True

        ```
    """

    def compute_delay(self, base_delay_ms: float, jitter_factor: float) -> float:
        """Compute a jittered delay.

        The delay is ``base_delay_ms + uniform(0, 1) * jitter_factor *
        base_delay_ms`` so it always lies between ``base_delay_ms`` and
        ``base_delay_ms * (1 + jitter_factor)``.

        Args:
            base_delay_ms: The base delay in milliseconds.
            jitter_factor: Factor for the random part of the delay.
                Set to 0 to disable jitter.

        Returns:
            The delay in milliseconds.
        """
        jitter = random.uniform(0, 1) * jitter_factor * base_delay_ms  # noqa: S311
        delay_ms = float(base_delay_ms + jitter)
        logger.debug(
            f"Waiting {delay_ms:.0f}ms before retry (base={base_delay_ms}ms, jitter={jitter:.0f}ms)"
        )
        return delay_ms

    async def suspend(self, delay_ms: float) -> None:
        """Wait without blocking the event loop.

        Only the calling coroutine is suspended, other tasks keep running
        during the wait.

        Args:
            delay_ms: The delay in milliseconds.
        """
        await asyncio.sleep(delay_ms / 1000)
