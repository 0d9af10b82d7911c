"""Tests for Result pattern implementation."""

from __future__ import annotations

import pytest

from core.result import Failure, Success, collect, failure, success
from services.errors import RateNotFoundError


class TestSuccess:
    """Tests for Success class."""

    def test_is_success_returns_true(self) -> None:
        """Success.is_success() should return True."""
        result = Success(42)

        assert result.is_success() is True
        assert result.is_failure() is False

    def test_unwrap_returns_value(self) -> None:
        """Success.unwrap() should return the contained value."""
        assert Success("1330").unwrap() == "1330"

    def test_unwrap_or_ignores_default(self) -> None:
        """Success.unwrap_or() should return value, ignoring default."""
        assert Success(100).unwrap_or(0) == 100

    def test_map_transforms_value(self) -> None:
        """Success.map() should transform the contained value."""
        mapped = Success(5).map(lambda x: x * 2)

        assert mapped.unwrap() == 10

    def test_and_then_chains_step(self) -> None:
        """Success.and_then() should run the next fallible step."""
        result = Success(3).and_then(lambda x: success(x + 1))

        assert result == Success(4)

    def test_and_then_can_fail(self) -> None:
        """A chained step may turn a Success into a Failure."""
        result = Success(0).and_then(lambda _: failure("zero quantity"))

        assert result == Failure("zero quantity")


class TestFailure:
    """Tests for Failure class."""

    def test_is_failure_returns_true(self) -> None:
        """Failure.is_failure() should return True."""
        result = Failure("error")

        assert result.is_failure() is True
        assert result.is_success() is False

    def test_unwrap_raises_value_error(self) -> None:
        """Failure.unwrap() should raise ValueError."""
        result = Failure("something went wrong")

        with pytest.raises(ValueError, match="Cannot unwrap Failure"):
            result.unwrap()

    def test_unwrap_or_returns_default(self) -> None:
        """Failure.unwrap_or() should return the default value."""
        result: Failure[str] = Failure("error")

        assert result.unwrap_or(42) == 42

    def test_map_returns_self(self) -> None:
        """Failure.map() should return self unchanged."""
        result: Failure[str] = Failure("error")

        assert result.map(lambda x: str(x)) is result

    def test_and_then_short_circuits(self) -> None:
        """Failure.and_then() should never call the chained step."""
        calls: list[int] = []
        result: Failure[str] = Failure("error")

        chained = result.and_then(lambda x: success(calls.append(x)))

        assert chained is result
        assert calls == []

    def test_carries_quote_error(self) -> None:
        """Failure should carry structured errors untouched."""
        error = RateNotFoundError("XX")

        result = failure(error)

        assert result.error is error
        assert result.error.key == "XX"


class TestHelpers:
    """Tests for success(), failure() and collect()."""

    def test_success_creates_success(self) -> None:
        """success() should create a Success instance."""
        assert isinstance(success(42), Success)

    def test_failure_creates_failure(self) -> None:
        """failure() should create a Failure instance."""
        assert isinstance(failure("error message"), Failure)

    def test_collect_all_success(self) -> None:
        """collect() should gather every value in order."""
        result = collect([success(1), success(2), success(3)])

        assert result == Success([1, 2, 3])

    def test_collect_returns_first_failure(self) -> None:
        """collect() should stop at the first Failure."""
        result = collect([success(1), failure("first"), failure("second")])

        assert result == Failure("first")

    def test_collect_empty(self) -> None:
        """collect() of nothing is an empty Success."""
        assert collect([]) == Success([])

    def test_collect_stops_consuming(self) -> None:
        """collect() should not consume results after a Failure."""
        consumed: list[int] = []

        def results():  # noqa: ANN202
            for i in range(3):
                consumed.append(i)
                yield failure("boom") if i == 1 else success(i)

        collect(results())

        assert consumed == [0, 1]
