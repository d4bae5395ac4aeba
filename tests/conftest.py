from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, Mock, patch

import pytest

from aretry import RetryConfig, RetryExecutor

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def mock_asleep() -> Generator[Mock, None, None]:
    """Patch asyncio.sleep to make tests run faster."""
    with patch("asyncio.sleep", new_callable=AsyncMock, return_value=None) as mock:
        yield mock


@pytest.fixture
def mock_logger() -> Mock:
    """Create a mock logger collecting the executor messages."""
    return Mock(spec=logging.Logger)


@pytest.fixture
def executor(mock_logger: Mock, mock_asleep: Mock) -> RetryExecutor:  # noqa: ARG001
    """Create an executor with the default configuration, a mock
    logger and no real waits."""
    return RetryExecutor(RetryConfig(), logger=mock_logger)


@pytest.fixture
def mock_operation() -> AsyncMock:
    """Create an async operation returning ``"success"``."""
    return AsyncMock(return_value="success")
