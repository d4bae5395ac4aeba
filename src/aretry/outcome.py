r"""Result of a single invocation of a retried operation."""

from __future__ import annotations

__all__ = ["AttemptOutcome", "Failure", "Success"]

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """The operation returned a value.

    Attributes:
        value: The value returned by the operation.
    """

    value: T

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """The operation raised an error.

    Attributes:
        error: The raised error.
    """

    error: Exception

    @property
    def is_success(self) -> bool:
        return False


AttemptOutcome = Union[Success[T], Failure]
