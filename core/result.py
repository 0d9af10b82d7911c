"""
Result pattern for explicit error handling.

Every service seam in the quote engine returns a Result instead of raising:
either a Success carrying the computed value or a Failure carrying a
structured error that callers can inspect and serialize.

Example:
    >>> def parse_quantity(raw: str) -> Result[int, str]:
    ...     if not raw.isdigit() or int(raw) < 1:
    ...         return failure(f"invalid quantity: {raw!r}")
    ...     return success(int(raw))
    ...
    >>> parse_quantity("3").and_then(lambda q: success(q * 2)).unwrap()
    6
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Never

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable


@dataclass(frozen=True, slots=True)
class Success[T]:
    """
    Represents a successful result containing a value.

    Attributes:
        value: The success value.
    """

    value: T

    def is_success(self) -> bool:
        """Return True if this is a Success."""
        return True

    def is_failure(self) -> bool:
        """Return False if this is a Success."""
        return False

    def unwrap(self) -> T:
        """Return the success value."""
        return self.value

    def unwrap_or(self, _default: T) -> T:
        """Return the success value (ignores default)."""
        return self.value

    def map[U](self, func: Callable[[T], U]) -> Success[U]:
        """
        Apply a function to the success value.

        Args:
            func: Function to apply to the value.

        Returns:
            New Success with the mapped value.
        """
        return Success(func(self.value))

    def and_then[U, E](
        self, func: Callable[[T], Success[U] | Failure[E]]
    ) -> Success[U] | Failure[E]:
        """
        Chain another fallible step onto this value.

        Args:
            func: Function returning a new Result.

        Returns:
            Whatever the chained step returns.
        """
        return func(self.value)


@dataclass(frozen=True, slots=True)
class Failure[E]:
    """
    Represents a failed result containing an error.

    Attributes:
        error: The error value.
    """

    error: E

    def is_success(self) -> bool:
        """Return False if this is a Failure."""
        return False

    def is_failure(self) -> bool:
        """Return True if this is a Failure."""
        return True

    def unwrap(self) -> Never:
        """
        Raise an error since this is a Failure.

        Raises:
            ValueError: Always, since Failure has no success value.
        """
        raise ValueError(f"Cannot unwrap Failure: {self.error}")

    def unwrap_or[T](self, default: T) -> T:
        """Return the default value since this is a Failure."""
        return default

    def map[T, U](self, _func: Callable[[T], U]) -> Failure[E]:
        """Do nothing for Failure (value mapping doesn't apply)."""
        return self

    def and_then[T, U](self, _func: Callable[[T], Success[U] | Failure[E]]) -> Failure[E]:
        """Short-circuit: a Failure never runs the chained step."""
        return self


# Type alias for Result
type Result[T, E] = Success[T] | Failure[E]


def success[T](value: T) -> Success[T]:
    """Create a Success result."""
    return Success(value)


def failure[E](error: E) -> Failure[E]:
    """Create a Failure result."""
    return Failure(error)


def collect[T, E](results: Iterable[Result[T, E]]) -> Result[list[T], E]:
    """
    Turn an iterable of Results into a Result of a list.

    Stops at the first Failure and returns it, so one bad element
    fails the whole batch.

    Args:
        results: Results to gather, consumed in order.

    Returns:
        Success with every value, or the first Failure encountered.
    """
    values: list[T] = []
    for result in results:
        if isinstance(result, Failure):
            return result
        values.append(result.value)
    return Success(values)
