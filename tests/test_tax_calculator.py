"""Tests for the per-item tax calculator."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from services.classification import ClassificationRegistry
from services.currency import CurrencyConversionService
from services.errors import ErrorCode
from services.taxes import (
    BasisMethod,
    FallbackTaxPolicy,
    ItemWarning,
    OverrideScope,
    PerItemTaxCalculator,
    TaxRateOverride,
    TaxSummary,
    ValuationOption,
    validate_line_item,
)
from tests.factories import KURTA_ROW, TODAY, make_item


def make_calculator(
    conversions: CurrencyConversionService,
    registry: ClassificationRegistry,
    policy: FallbackTaxPolicy | None = None,
    overrides: tuple[TaxRateOverride, ...] = (),
) -> PerItemTaxCalculator:
    """Build a calculator pinned to the test date."""
    return PerItemTaxCalculator(
        conversion_service=conversions,
        registry=registry,
        fallback_policy=policy,
        overrides=overrides,
        today=lambda: TODAY,
    )


class TestValidateLineItem:
    """Tests for validate_line_item."""

    def test_valid_item(self) -> None:
        """A well-formed item has no violations."""
        assert validate_line_item(make_item()) == []

    def test_zero_price_is_valid(self) -> None:
        """A free item is still a valid item."""
        assert validate_line_item(make_item(price="0")) == []

    def test_negative_price(self) -> None:
        """Negative prices should be rejected."""
        violations = validate_line_item(make_item(price="-1"))

        assert [v.field for v in violations] == ["declared_unit_price"]

    def test_non_finite_price(self) -> None:
        """NaN prices should be rejected."""
        violations = validate_line_item(make_item(price="NaN"))

        assert violations[0].message == "must be a finite decimal"

    def test_zero_quantity(self) -> None:
        """Quantity must be at least 1."""
        violations = validate_line_item(make_item(quantity=0))

        assert [v.field for v in violations] == ["quantity"]

    def test_boolean_quantity(self) -> None:
        """A boolean is not a quantity."""
        violations = validate_line_item(make_item(quantity=True))

        assert violations[0].message == "must be an integer"

    def test_reports_every_violation(self) -> None:
        """Price and quantity violations should both be reported."""
        assert len(validate_line_item(make_item(price="-5", quantity=0))) == 2


class TestCalculateItemBasis:
    """Tests for taxable basis selection."""

    def test_minimum_valuation_applies(self, calculator: PerItemTaxCalculator) -> None:
        """A kurta declared at 500 NPR is taxed on the 1330 NPR floor."""
        taxed = calculator.calculate_item(make_item(price="500"), "NP").unwrap()

        assert taxed.basis_method == BasisMethod.MINIMUM_VALUATION
        assert taxed.declared_total == Decimal("500")
        assert taxed.taxable_basis == Decimal("1330")
        assert taxed.converted_minimum == Decimal("1330")
        assert taxed.duty_amount == Decimal("159.60")
        assert taxed.tax_amount == Decimal("172.90")
        assert taxed.minimum_valuation_applied is True
        assert taxed.warnings == (ItemWarning.MINIMUM_VALUATION_APPLIED,)

    def test_declared_price_above_floor(self, calculator: PerItemTaxCalculator) -> None:
        """A kurta declared at 2000 NPR is taxed on its declared price."""
        taxed = calculator.calculate_item(make_item(price="2000"), "NP").unwrap()

        assert taxed.basis_method == BasisMethod.HIGHER_OF_BOTH
        assert taxed.taxable_basis == Decimal("2000")
        assert taxed.duty_amount == Decimal("240.00")
        assert taxed.tax_amount == Decimal("260.00")
        assert taxed.conversion is not None
        assert taxed.warnings == ()

    def test_tie_uses_declared_price(self, calculator: PerItemTaxCalculator) -> None:
        """A declared price equal to the floor is not a floor application."""
        taxed = calculator.calculate_item(make_item(price="1330"), "NP").unwrap()

        assert taxed.basis_method == BasisMethod.HIGHER_OF_BOTH
        assert taxed.minimum_valuation_applied is False

    def test_floor_compares_line_total(self, calculator: PerItemTaxCalculator) -> None:
        """The floor is compared with unit price times quantity."""
        taxed = calculator.calculate_item(make_item(price="400", quantity=4), "NP").unwrap()

        assert taxed.basis_method == BasisMethod.HIGHER_OF_BOTH
        assert taxed.taxable_basis == Decimal("1600")

    def test_no_floor(self, calculator: PerItemTaxCalculator) -> None:
        """Books have no floor and are zero-rated."""
        item = make_item(item_id="book-1", code="4901", price="800")

        taxed = calculator.calculate_item(item, "NP").unwrap()

        assert taxed.basis_method == BasisMethod.ORIGINAL_PRICE
        assert taxed.taxable_basis == Decimal("800")
        assert taxed.conversion is None
        assert taxed.duty_amount == Decimal("0.00")
        assert taxed.tax_amount == Decimal("0.00")
        assert taxed.category == "books"
        assert taxed.warnings == (ItemWarning.ZERO_RATED,)

    def test_duty_and_tax_rounded_half_up(self, calculator: PerItemTaxCalculator) -> None:
        """Duty and tax are rounded to cents, the basis is not."""
        taxed = calculator.calculate_item(make_item(price="333.33", quantity=5), "NP").unwrap()

        assert taxed.taxable_basis == Decimal("1666.65")
        assert taxed.duty_amount == Decimal("200.00")
        assert taxed.tax_amount == Decimal("216.66")

    def test_dotted_code(self, calculator: PerItemTaxCalculator) -> None:
        """Item codes in dotted notation should resolve."""
        taxed = calculator.calculate_item(make_item(code="62.11"), "NP").unwrap()

        assert taxed.category == "clothing"

    def test_missing_origin_rate(self, calculator: PerItemTaxCalculator) -> None:
        """An item needing conversion fails without an origin rate."""
        result = calculator.calculate_item(make_item(), "XX")

        assert result.is_failure()
        assert result.error.code == ErrorCode.RATE_NOT_FOUND

    def test_missing_origin_rate_without_floor(self, calculator: PerItemTaxCalculator) -> None:
        """An item with no floor never needs the origin rate."""
        result = calculator.calculate_item(make_item(code="4901"), "XX")

        assert result.is_success()

    def test_conversion_flag_without_floor(self, conversions: CurrencyConversionService) -> None:
        """A conversion-flagged row with no floor is taxed at its own rates."""
        registry = ClassificationRegistry()
        registry.load(
            [
                {
                    **KURTA_ROW,
                    "code": "9999",
                    "minimum_valuation_usd": None,
                    "duty_rate_percent": "5",
                }
            ]
        )
        calculator = make_calculator(conversions, registry)

        taxed = calculator.calculate_item(make_item(code="9999", price="100"), "NP").unwrap()

        assert taxed.classification_missing is False
        assert taxed.basis_method == BasisMethod.ORIGINAL_PRICE
        assert taxed.taxable_basis == Decimal("100")
        assert taxed.duty_amount == Decimal("5.00")

    def test_invalid_item(self, calculator: PerItemTaxCalculator) -> None:
        """Domain violations should fail the item with every violation."""
        result = calculator.calculate_item(make_item(price="-1", quantity=0), "NP")

        assert result.is_failure()
        assert result.error.code == ErrorCode.INVALID_LINE_ITEM
        assert result.error.key == "kurta-1"
        assert len(result.error.violations) == 2


class TestConfidence:
    """Tests for confidence scoring."""

    def test_conversion_lowers_confidence(self, calculator: PerItemTaxCalculator) -> None:
        """A converted floor scores below the registry confidence alone."""
        taxed = calculator.calculate_item(make_item(), "NP").unwrap()

        assert taxed.confidence_score == pytest.approx(0.875)

    def test_no_conversion(self, calculator: PerItemTaxCalculator) -> None:
        """Without a conversion, the score blends base and registry confidence."""
        taxed = calculator.calculate_item(make_item(code="4901"), "NP").unwrap()

        assert taxed.confidence_score == pytest.approx(0.95)


class TestFallback:
    """Tests for unknown classification codes."""

    def test_fallback_rates_applied(self, calculator: PerItemTaxCalculator) -> None:
        """Unknown codes are taxed with the fallback policy and flagged."""
        item = make_item(item_id="gift-1", code="9999", price="1000")

        taxed = calculator.calculate_item(item, "NP").unwrap()

        assert taxed.classification_missing is True
        assert taxed.category is None
        assert taxed.basis_method == BasisMethod.ORIGINAL_PRICE
        assert taxed.duty_amount == Decimal("100.00")
        assert taxed.tax_amount == Decimal("130.00")
        assert taxed.fallback_policy == "vat-regime-default"
        assert taxed.confidence_score == 0.5
        assert taxed.warnings == (ItemWarning.FALLBACK_RATES_USED,)

    def test_no_policy_is_fatal(
        self,
        conversions: CurrencyConversionService,
        registry: ClassificationRegistry,
    ) -> None:
        """Without a fallback policy, an unknown code fails the item."""
        calculator = make_calculator(conversions, registry)

        result = calculator.calculate_item(make_item(code="9999"), "NP")

        assert result.is_failure()
        assert result.error.code == ErrorCode.CLASSIFICATION_NOT_FOUND
        assert result.error.key == "9999"

    def test_expired_lenient_policy_warns(
        self,
        conversions: CurrencyConversionService,
        registry: ClassificationRegistry,
    ) -> None:
        """An expired non-strict policy still applies, with a warning."""
        policy = FallbackTaxPolicy("interim", Decimal("10"), Decimal("13"), date(2026, 1, 31))
        calculator = make_calculator(conversions, registry, policy)

        taxed = calculator.calculate_item(make_item(code="9999"), "NP").unwrap()

        assert taxed.warnings == (
            ItemWarning.FALLBACK_RATES_USED,
            ItemWarning.FALLBACK_POLICY_EXPIRED,
        )

    def test_expired_strict_policy_is_fatal(
        self,
        conversions: CurrencyConversionService,
        registry: ClassificationRegistry,
    ) -> None:
        """An expired strict policy refuses unknown codes."""
        policy = FallbackTaxPolicy(
            "interim",
            Decimal("10"),
            Decimal("13"),
            review_by=date(2026, 1, 31),
            strict_after_expiry=True,
        )
        calculator = make_calculator(conversions, registry, policy)

        result = calculator.calculate_item(make_item(code="9999"), "NP")

        assert result.is_failure()
        assert result.error.code == ErrorCode.CLASSIFICATION_NOT_FOUND
        assert "expired on 2026-01-31" in result.error.message

    def test_zero_rated_policy(
        self,
        conversions: CurrencyConversionService,
        registry: ClassificationRegistry,
    ) -> None:
        """A zero-rate fallback is flagged as zero-rated."""
        policy = FallbackTaxPolicy("duty-free", Decimal("0"), Decimal("0"))
        calculator = make_calculator(conversions, registry, policy)

        taxed = calculator.calculate_item(make_item(code="9999"), "NP").unwrap()

        assert ItemWarning.ZERO_RATED in taxed.warnings

    def test_unloaded_registry_is_not_fallback(
        self,
        conversions: CurrencyConversionService,
        fallback_policy: FallbackTaxPolicy,
    ) -> None:
        """A registry that was never loaded fails rather than falling back."""
        calculator = make_calculator(conversions, ClassificationRegistry(), fallback_policy)

        result = calculator.calculate_item(make_item(), "NP")

        assert result.is_failure()
        assert result.error.code == ErrorCode.SOURCE_UNAVAILABLE


class TestOverrides:
    """Tests for rate overrides during calculation."""

    def test_category_override(
        self,
        conversions: CurrencyConversionService,
        registry: ClassificationRegistry,
    ) -> None:
        """A category override replaces the registry duty rate."""
        override = TaxRateOverride(OverrideScope.CATEGORY, "clothing", Decimal("5"))
        calculator = make_calculator(conversions, registry, overrides=(override,))

        taxed = calculator.calculate_item(make_item(), "NP").unwrap()

        assert taxed.duty_rate_percent == Decimal("5")
        assert taxed.duty_amount == Decimal("66.50")
        assert taxed.tax_amount == Decimal("172.90")
        assert taxed.applied_overrides == ("category:clothing",)
        assert ItemWarning.RATE_OVERRIDE_APPLIED in taxed.warnings

    def test_fallback_items_ignore_overrides(
        self,
        conversions: CurrencyConversionService,
        registry: ClassificationRegistry,
        fallback_policy: FallbackTaxPolicy,
    ) -> None:
        """Overrides apply to registry entries only."""
        override = TaxRateOverride(OverrideScope.GLOBAL, duty_rate_percent=Decimal("0"))
        calculator = make_calculator(conversions, registry, fallback_policy, (override,))

        taxed = calculator.calculate_item(make_item(code="9999", price="1000"), "NP").unwrap()

        assert taxed.duty_amount == Decimal("100.00")
        assert taxed.applied_overrides == ()


class TestCalculateItems:
    """Tests for calculate_items."""

    def test_preserves_order(self, calculator: PerItemTaxCalculator) -> None:
        """Taxed items come back in input order."""
        items = [make_item("a", code="4901"), make_item("b"), make_item("c", code="9999")]

        taxed = calculator.calculate_items(items, "NP").unwrap()

        assert [t.item.id for t in taxed] == ["a", "b", "c"]

    def test_first_failure_aborts(self, calculator: PerItemTaxCalculator) -> None:
        """One invalid item fails the whole batch."""
        items = [make_item("a"), make_item("b", quantity=0), make_item("c", price="-1")]

        result = calculator.calculate_items(items, "NP")

        assert result.is_failure()
        assert result.error.key == "b"

    def test_shared_floor_converted_once(
        self,
        calculator: PerItemTaxCalculator,
        conversions: CurrencyConversionService,
    ) -> None:
        """Items sharing a floor reuse one conversion within a batch."""
        items = [make_item("a"), make_item("b", price="900")]

        with patch.object(
            conversions,
            "convert_minimum_valuation",
            wraps=conversions.convert_minimum_valuation,
        ) as convert:
            taxed = calculator.calculate_items(items, "NP").unwrap()

        assert convert.call_count == 1
        assert taxed[0].conversion == taxed[1].conversion


class TestSummarize:
    """Tests for summarize."""

    def test_summary(self, calculator: PerItemTaxCalculator) -> None:
        """Summary counts and totals cover every item."""
        items = [
            make_item("a", price="500"),
            make_item("b", price="2000"),
            make_item("c", code="9999", price="1000"),
        ]
        taxed = calculator.calculate_items(items, "NP").unwrap()

        summary = PerItemTaxCalculator.summarize(taxed)

        assert summary.total_items == 3
        assert summary.minimum_valuation_items == 1
        assert summary.conversions_applied == 2
        assert summary.items_with_warnings == 2
        assert summary.missing_classifications == 1
        assert summary.average_confidence == pytest.approx(0.75)
        assert summary.total_duty == Decimal("499.60")
        assert summary.total_tax == Decimal("562.90")

    def test_empty(self) -> None:
        """An empty batch summarizes to zeros."""
        assert PerItemTaxCalculator.summarize([]) == TaxSummary()


class TestTaxedLineItemToDict:
    """Tests for TaxedLineItem.to_dict."""

    def test_to_dict(self, calculator: PerItemTaxCalculator) -> None:
        """Amounts should be rendered as strings."""
        data = calculator.calculate_item(make_item(), "NP").unwrap().to_dict()

        assert data["basis_method"] == "minimum_valuation"
        assert data["taxable_basis"] == "1330"
        assert data["converted_minimum"] == "1330"
        assert data["conversion"] == "$10 USD → 1330 NPR"
        assert data["duty_amount"] == "159.60"
        assert data["warnings"] == ["minimum_valuation_applied"]


class TestValuationOptions:
    """Tests for the duty and tax kept under each candidate basis."""

    def test_both_options_when_floor_converted(self, calculator: PerItemTaxCalculator) -> None:
        """The declared price and the floor are both priced out."""
        taxed = calculator.calculate_item(make_item(price="500"), "NP").unwrap()

        assert taxed.valuation_options == (
            ValuationOption(
                BasisMethod.ORIGINAL_PRICE, Decimal("500"), Decimal("60.00"), Decimal("65.00")
            ),
            ValuationOption(
                BasisMethod.MINIMUM_VALUATION,
                Decimal("1330"),
                Decimal("159.60"),
                Decimal("172.90"),
            ),
        )

    def test_declared_option_only_without_floor(self, calculator: PerItemTaxCalculator) -> None:
        """Items without a floor have a single option."""
        taxed = calculator.calculate_item(make_item(code="4901", price="800"), "NP").unwrap()

        assert [option.method for option in taxed.valuation_options] == [
            BasisMethod.ORIGINAL_PRICE
        ]

    def test_no_options_for_fallback_items(self, calculator: PerItemTaxCalculator) -> None:
        """Fallback items have no registry rates to compare."""
        taxed = calculator.calculate_item(make_item(code="9999"), "NP").unwrap()

        assert taxed.valuation_options == ()

    def test_to_dict(self, calculator: PerItemTaxCalculator) -> None:
        """Options should be rendered with string amounts."""
        data = calculator.calculate_item(make_item(), "NP").unwrap().to_dict()

        assert data["valuation_options"][1] == {
            "method": "minimum_valuation",
            "basis": "1330",
            "duty_amount": "159.60",
            "tax_amount": "172.90",
        }
