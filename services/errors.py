"""Error types shared by the conversion, classification, tax and quote services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for quote calculation errors."""

    VALIDATION = "validation"
    RATE_NOT_FOUND = "rate_not_found"
    CLASSIFICATION_NOT_FOUND = "classification_not_found"
    INVALID_LINE_ITEM = "invalid_line_item"
    CALCULATION = "calculation"
    SOURCE_UNAVAILABLE = "source_unavailable"


@dataclass(frozen=True, slots=True)
class FieldViolation:
    """
    One violated constraint on a caller-supplied field.

    Attributes:
        field: Dotted path of the offending field (e.g. "items.0.quantity").
        message: Human-readable description of the violation.
    """

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        """Return a JSON-safe representation."""
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True, slots=True)
class QuoteError:
    """
    Base error type for quote calculation.

    Attributes:
        code: Error code identifying the type of error.
        message: Human-readable error message.
        key: The missing or offending key (country code, HSN code, item id).
        violations: Every violated field, for validation-type errors.
        details: Additional error details (optional).
    """

    code: ErrorCode
    message: str
    key: str | None = None
    violations: tuple[FieldViolation, ...] = ()
    details: str | None = None

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.key:
            return f"{self.code.value} [{self.key}]: {self.message}"
        return f"{self.code.value}: {self.message}"

    @property
    def is_retryable(self) -> bool:
        """Only an unavailable upstream source can succeed on a plain retry."""
        return self.code == ErrorCode.SOURCE_UNAVAILABLE

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-safe representation."""
        return {
            "code": self.code.value,
            "message": self.message,
            "key": self.key,
            "violations": [v.to_dict() for v in self.violations],
            "details": self.details,
        }


def ValidationError(
    violations: list[FieldViolation] | tuple[FieldViolation, ...],
    message: str = "Invalid quote request",
) -> QuoteError:
    """Create a validation error listing every violated field."""
    return QuoteError(
        code=ErrorCode.VALIDATION,
        message=message,
        violations=tuple(violations),
    )


def RateNotFoundError(
    key: str,
    source: str = "exchange_rate",
    message: str | None = None,
) -> QuoteError:
    """Create an error for a missing exchange rate, route or gateway entry."""
    return QuoteError(
        code=ErrorCode.RATE_NOT_FOUND,
        message=message or f"No {source.replace('_', ' ')} configured for {key}",
        key=key,
        details=source,
    )


def ClassificationNotFoundError(code: str, message: str | None = None) -> QuoteError:
    """Create an error for a classification code missing from the registry."""
    return QuoteError(
        code=ErrorCode.CLASSIFICATION_NOT_FOUND,
        message=message or f"Classification code not found: {code}",
        key=code,
    )


def InvalidLineItemError(
    item_id: str,
    violations: list[FieldViolation] | tuple[FieldViolation, ...],
) -> QuoteError:
    """Create an error for a line item that fails domain constraints."""
    return QuoteError(
        code=ErrorCode.INVALID_LINE_ITEM,
        message=f"Line item {item_id} is invalid",
        key=item_id,
        violations=tuple(violations),
    )


def CalculationError(message: str, details: str | None = None) -> QuoteError:
    """Create an error for arithmetic or consistency failures."""
    return QuoteError(
        code=ErrorCode.CALCULATION,
        message=message,
        details=details,
    )


def SourceUnavailableError(source: str, details: str | None = None) -> QuoteError:
    """Create an error for a reference-data source that could not be read."""
    return QuoteError(
        code=ErrorCode.SOURCE_UNAVAILABLE,
        message=f"Reference data source unavailable: {source}",
        key=source,
        details=details,
    )
