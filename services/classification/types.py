"""Types for the classification registry."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_CODE_NOISE = re.compile(r"[\s.]")


def normalize_code(code: str) -> str:
    """Normalize a classification code: trim, drop dots and whitespace, uppercase."""
    return _CODE_NOISE.sub("", code).upper()


class ClassificationEntry(BaseModel):
    """
    Tax metadata for one customs classification (HSN) code.

    Rows are validated when the registry loads them; a row with a missing
    field, an unknown field or an out-of-range rate is rejected instead of
    being carried into calculations.

    Attributes:
        code: Normalized classification code.
        description: Product description for display.
        category: Product category (e.g. "clothing", "books").
        minimum_valuation_usd: Anti-undervaluation floor in USD, or None when
            no floor applies.
        requires_conversion: Whether the floor must be converted into the
            origin currency and compared with the declared price.
        duty_rate_percent: Customs duty rate.
        tax_rate_percent: Destination VAT/GST rate.
        classification_confidence: Confidence of the classification (0..1).
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    code: str = Field(min_length=2, max_length=16)
    description: str = Field(min_length=1)
    category: str = Field(min_length=1)
    minimum_valuation_usd: Decimal | None = Field(default=None, ge=0)
    requires_conversion: bool = False
    duty_rate_percent: Decimal = Field(ge=0, le=100)
    tax_rate_percent: Decimal = Field(ge=0, le=100)
    classification_confidence: float = Field(default=1.0, ge=0, le=1)

    @field_validator("code")
    @classmethod
    def normalize(cls, v: str) -> str:
        """Store codes in normalized form."""
        normalized = normalize_code(v)
        if not normalized.isalnum():
            msg = "code must be alphanumeric"
            raise ValueError(msg)
        return normalized

    @model_validator(mode="before")
    @classmethod
    def drop_conversion_without_floor(cls, data: Any) -> Any:
        """A row with nothing to convert is taxed on its declared price."""
        if (
            isinstance(data, Mapping)
            and data.get("requires_conversion")
            and data.get("minimum_valuation_usd") is None
        ):
            return {**data, "requires_conversion": False}
        return data

    @property
    def has_minimum_valuation(self) -> bool:
        """Whether an anti-undervaluation floor applies."""
        return self.minimum_valuation_usd is not None


@dataclass(frozen=True, slots=True)
class RejectedRow:
    """
    A registry row refused at load time.

    Attributes:
        index: Position of the row in the loaded batch.
        code: Raw code of the row, if present.
        errors: Validation messages.
    """

    index: int
    code: str | None
    errors: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class RegistryLoadReport:
    """
    Outcome of loading a batch of registry rows.

    Attributes:
        snapshot_version: Version of the snapshot now being served.
        accepted: Number of rows that entered the snapshot.
        rejected: Rows that failed validation.
    """

    snapshot_version: int
    accepted: int
    rejected: tuple[RejectedRow, ...] = ()

    @property
    def has_rejections(self) -> bool:
        """Whether any row was refused."""
        return bool(self.rejected)
