"""Per-item tax calculation."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from core.logging import get_logger
from core.result import Failure, Result, failure, success
from services.currency.rounding import ZERO, round_money
from services.errors import (
    ClassificationNotFoundError,
    ErrorCode,
    FieldViolation,
    InvalidLineItemError,
    QuoteError,
)
from services.taxes.policy import apply_overrides
from services.taxes.types import (
    BasisMethod,
    ItemWarning,
    TaxedLineItem,
    TaxSummary,
    ValuationOption,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from services.classification.registry import ClassificationRegistry, RegistrySnapshot
    from services.classification.types import ClassificationEntry
    from services.currency.service import CurrencyConversionService
    from services.currency.types import Conversion, ExchangeRateSnapshot
    from services.taxes.policy import FallbackTaxPolicy, TaxRateOverride
    from services.taxes.types import LineItem

logger = get_logger(__name__)

_HUNDRED = Decimal("100")

BASE_CONFIDENCE = 0.9
CONVERSION_PENALTY = 0.05
FALLBACK_CONFIDENCE = 0.5


def _valuation_option(
    method: BasisMethod, basis: Decimal, duty_rate: Decimal, tax_rate: Decimal
) -> ValuationOption:
    return ValuationOption(
        method=method,
        basis=basis,
        duty_amount=round_money(basis * duty_rate / _HUNDRED),
        tax_amount=round_money(basis * tax_rate / _HUNDRED),
    )


type ConversionMemo = dict[tuple[Decimal, str, int], Result[Conversion, QuoteError]]


def validate_line_item(item: LineItem) -> list[FieldViolation]:
    """
    Check the domain constraints of a line item.

    Returns:
        Every violated constraint (empty when the item is valid).
    """
    violations: list[FieldViolation] = []
    price = item.declared_unit_price
    if not isinstance(price, Decimal) or not price.is_finite():
        violations.append(FieldViolation("declared_unit_price", "must be a finite decimal"))
    elif price < ZERO:
        violations.append(
            FieldViolation("declared_unit_price", "must be greater than or equal to 0")
        )
    if isinstance(item.quantity, bool) or not isinstance(item.quantity, int):
        violations.append(FieldViolation("quantity", "must be an integer"))
    elif item.quantity < 1:
        violations.append(FieldViolation("quantity", "must be at least 1"))
    return violations


class PerItemTaxCalculator:
    """
    Computes the taxable basis, duty and tax for line items.

    The basis is the declared total, or the classification's minimum
    valuation converted into the origin currency when that is higher.
    Unknown classification codes are taxed with the fallback policy and
    flagged rather than failing the item.

    Example:
        >>> calculator = PerItemTaxCalculator(conversions, registry, policy)
        >>> taxed = calculator.calculate_item(kurta, origin_country="NP").unwrap()
        >>> taxed.basis_method
        <BasisMethod.MINIMUM_VALUATION: 'minimum_valuation'>
    """

    def __init__(
        self,
        conversion_service: CurrencyConversionService,
        registry: ClassificationRegistry,
        fallback_policy: FallbackTaxPolicy | None = None,
        overrides: Sequence[TaxRateOverride] = (),
        today: Callable[[], date] = date.today,
    ) -> None:
        """
        Initialize the calculator.

        Args:
            conversion_service: Converts minimum valuations into origin currency.
            registry: Classification lookup.
            fallback_policy: Rates for unknown codes; None makes unknown codes fatal.
            overrides: Administrative rate overrides.
            today: Clock used to check the fallback policy's review date.
        """
        self._conversions = conversion_service
        self._registry = registry
        self._fallback = fallback_policy
        self._overrides = tuple(overrides)
        self._today = today

    @property
    def fallback_policy(self) -> FallbackTaxPolicy | None:
        """Return the configured fallback policy."""
        return self._fallback

    def calculate_item(
        self,
        item: LineItem,
        origin_country: str,
        rate_snapshot: ExchangeRateSnapshot | None = None,
        registry_snapshot: RegistrySnapshot | None = None,
        memo: ConversionMemo | None = None,
    ) -> Result[TaxedLineItem, QuoteError]:
        """
        Compute basis, duty and tax for one line item.

        Args:
            item: Line item priced in the origin currency.
            origin_country: Country the item ships from.
            rate_snapshot: Exchange rates to convert with (defaults to current).
            registry_snapshot: Registry to classify against (defaults to current).
            memo: Conversion results shared across one calculation.

        Returns:
            Result containing the TaxedLineItem, InvalidLineItemError,
            RateNotFoundError, or ClassificationNotFoundError when no
            usable fallback policy exists.
        """
        violations = validate_line_item(item)
        if violations:
            logger.info("Invalid line item", item_id=item.id, violations=len(violations))
            return failure(InvalidLineItemError(item.id, violations))

        lookup = self._registry.lookup(item.classification_code, registry_snapshot)
        if isinstance(lookup, Failure):
            if lookup.error.code != ErrorCode.CLASSIFICATION_NOT_FOUND:
                return lookup
            return self._calculate_with_fallback(item, lookup.error)

        entry = lookup.value
        declared_total = item.declared_total
        conversion: Conversion | None = None
        basis = declared_total
        method = BasisMethod.ORIGINAL_PRICE

        if entry.requires_conversion and entry.minimum_valuation_usd is not None:
            converted = self._convert_minimum(
                entry.minimum_valuation_usd, origin_country, rate_snapshot, memo
            )
            if isinstance(converted, Failure):
                return converted
            conversion = converted.value
            if declared_total >= conversion.converted_amount:
                method = BasisMethod.HIGHER_OF_BOTH
            else:
                basis = conversion.converted_amount
                method = BasisMethod.MINIMUM_VALUATION

        duty_rate, tax_rate, applied = apply_overrides(entry, self._overrides)
        warnings: list[ItemWarning] = []
        if method == BasisMethod.MINIMUM_VALUATION:
            warnings.append(ItemWarning.MINIMUM_VALUATION_APPLIED)
        if duty_rate == ZERO and tax_rate == ZERO:
            warnings.append(ItemWarning.ZERO_RATED)
        if applied:
            warnings.append(ItemWarning.RATE_OVERRIDE_APPLIED)

        options = [
            _valuation_option(BasisMethod.ORIGINAL_PRICE, declared_total, duty_rate, tax_rate)
        ]
        if conversion is not None:
            options.append(
                _valuation_option(
                    BasisMethod.MINIMUM_VALUATION,
                    conversion.converted_amount,
                    duty_rate,
                    tax_rate,
                )
            )

        taxed = TaxedLineItem(
            item=item,
            declared_total=declared_total,
            taxable_basis=basis,
            basis_method=method,
            duty_rate_percent=duty_rate,
            tax_rate_percent=tax_rate,
            duty_amount=round_money(basis * duty_rate / _HUNDRED),
            tax_amount=round_money(basis * tax_rate / _HUNDRED),
            category=entry.category,
            conversion=conversion,
            confidence_score=self._confidence(entry, conversion),
            warnings=tuple(warnings),
            applied_overrides=applied,
            valuation_options=tuple(options),
        )
        logger.debug(
            "Item taxed",
            item_id=item.id,
            code=entry.code,
            basis=str(basis),
            method=method.value,
            duty=str(taxed.duty_amount),
            tax=str(taxed.tax_amount),
        )
        return success(taxed)

    def calculate_items(
        self,
        items: Iterable[LineItem],
        origin_country: str,
        rate_snapshot: ExchangeRateSnapshot | None = None,
        registry_snapshot: RegistrySnapshot | None = None,
    ) -> Result[list[TaxedLineItem], QuoteError]:
        """
        Compute every item against one pair of snapshots.

        The first failing item aborts the whole batch.

        Returns:
            Result containing the taxed items in input order, or the first error.
        """
        rates = rate_snapshot
        if rates is None:
            rates = self._conversions.snapshot().unwrap_or(None)
        registry = registry_snapshot
        if registry is None:
            registry = self._registry.snapshot()
        memo: ConversionMemo = {}

        taxed: list[TaxedLineItem] = []
        for item in items:
            result = self.calculate_item(item, origin_country, rates, registry, memo)
            if isinstance(result, Failure):
                return result
            taxed.append(result.value)
        return success(taxed)

    @staticmethod
    def summarize(items: Sequence[TaxedLineItem]) -> TaxSummary:
        """Aggregate counts, confidence and totals over taxed items."""
        if not items:
            return TaxSummary()
        return TaxSummary(
            total_items=len(items),
            minimum_valuation_items=sum(1 for i in items if i.minimum_valuation_applied),
            conversions_applied=sum(1 for i in items if i.conversion is not None),
            items_with_warnings=sum(1 for i in items if i.warnings),
            missing_classifications=sum(1 for i in items if i.classification_missing),
            average_confidence=round(sum(i.confidence_score for i in items) / len(items), 4),
            total_duty=sum((i.duty_amount for i in items), ZERO),
            total_tax=sum((i.tax_amount for i in items), ZERO),
        )

    def _calculate_with_fallback(
        self,
        item: LineItem,
        not_found: QuoteError,
    ) -> Result[TaxedLineItem, QuoteError]:
        """Tax an unclassified item with the fallback policy, if one may be used."""
        policy = self._fallback
        if policy is None:
            logger.warning("Unknown classification and no fallback policy", item_id=item.id)
            return failure(not_found)

        today = self._today()
        if not policy.allows_quoting(today):
            logger.error(
                "Fallback policy expired",
                policy=policy.name,
                review_by=str(policy.review_by),
                item_id=item.id,
            )
            return failure(
                ClassificationNotFoundError(
                    not_found.key or item.classification_code,
                    message=(
                        f"Classification code not found and fallback policy "
                        f"{policy.name} expired on {policy.review_by}"
                    ),
                )
            )

        warnings = [ItemWarning.FALLBACK_RATES_USED]
        if policy.is_expired(today):
            warnings.append(ItemWarning.FALLBACK_POLICY_EXPIRED)
        if policy.duty_rate_percent == ZERO and policy.tax_rate_percent == ZERO:
            warnings.append(ItemWarning.ZERO_RATED)

        logger.warning(
            "Fallback rates applied",
            policy=policy.name,
            item_id=item.id,
            code=not_found.key,
            expired=policy.is_expired(today),
        )

        declared_total = item.declared_total
        return success(
            TaxedLineItem(
                item=item,
                declared_total=declared_total,
                taxable_basis=declared_total,
                basis_method=BasisMethod.ORIGINAL_PRICE,
                duty_rate_percent=policy.duty_rate_percent,
                tax_rate_percent=policy.tax_rate_percent,
                duty_amount=round_money(declared_total * policy.duty_rate_percent / _HUNDRED),
                tax_amount=round_money(declared_total * policy.tax_rate_percent / _HUNDRED),
                classification_missing=True,
                confidence_score=FALLBACK_CONFIDENCE,
                warnings=tuple(warnings),
                fallback_policy=policy.name,
            )
        )

    def _convert_minimum(
        self,
        amount_usd: Decimal,
        origin_country: str,
        snapshot: ExchangeRateSnapshot | None,
        memo: ConversionMemo | None,
    ) -> Result[Conversion, QuoteError]:
        """Convert a minimum valuation, reusing results within one calculation."""
        if memo is None or snapshot is None:
            return self._conversions.convert_minimum_valuation(amount_usd, origin_country, snapshot)

        key = (amount_usd, origin_country.upper(), snapshot.version)
        if key not in memo:
            memo[key] = self._conversions.convert_minimum_valuation(
                amount_usd, origin_country, snapshot
            )
        return memo[key]

    @staticmethod
    def _confidence(entry: ClassificationEntry, conversion: Conversion | None) -> float:
        """Score how much the basis and rates can be trusted."""
        score = (BASE_CONFIDENCE + entry.classification_confidence) / 2
        if conversion is not None:
            score -= CONVERSION_PENALTY
        return round(min(max(score, 0.0), 1.0), 4)
