"""Models for the pricing reference data."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from services.currency.types import ExchangeRate
from services.quotes.tables import GatewayFees, RouteRates
from services.taxes.policy import OverrideScope, TaxRateOverride

_PERCENT_VALIDATORS = [MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))]
_NON_NEGATIVE = [MinValueValidator(Decimal("0"))]


class CountrySetting(models.Model):
    """
    Exchange rate and tax regime of a country.

    Rates are quoted as units of local currency per 1 USD.
    """

    class TaxSystem(models.TextChoices):
        """Destination consumption tax regime."""

        VAT = "vat", "VAT"
        GST = "gst", "GST"
        SALES_TAX = "sales_tax", "Sales tax"

    country_code = models.CharField(
        max_length=2,
        unique=True,
        help_text="ISO 3166-1 alpha-2 country code",
    )
    country_name = models.CharField(max_length=100, help_text="Full country name")
    currency_code = models.CharField(max_length=3, help_text="Local currency code (ISO 4217)")
    rate_from_usd = models.DecimalField(
        max_digits=18,
        decimal_places=6,
        validators=[MinValueValidator(Decimal("0.000001"))],
        help_text="Units of local currency per 1 USD",
    )
    tax_system = models.CharField(
        max_length=10,
        choices=TaxSystem.choices,
        default=TaxSystem.VAT,
    )
    is_active = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Meta options for CountrySetting model."""

        db_table = "country_settings"
        ordering = ["country_name"]
        verbose_name = "Country Setting"
        verbose_name_plural = "Country Settings"

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.country_name} ({self.country_code}, {self.currency_code})"

    def to_exchange_rate(self) -> ExchangeRate:
        """Return the row as an ExchangeRate value."""
        return ExchangeRate(
            country_code=self.country_code.upper(),
            currency_code=self.currency_code.upper(),
            rate_from_usd=Decimal(self.rate_from_usd),
        )


class HSNCode(models.Model):
    """Customs classification code with its tax metadata."""

    hsn_code = models.CharField(max_length=16, unique=True, help_text="HSN code, e.g. '6211'")
    description = models.CharField(max_length=255)
    category = models.CharField(max_length=50, help_text="Product category, e.g. 'clothing'")
    minimum_valuation_usd = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=_NON_NEGATIVE,
        help_text="Anti-undervaluation floor in USD (empty for none)",
    )
    requires_currency_conversion = models.BooleanField(
        default=False,
        help_text="Convert the floor into the origin currency and compare with the price",
    )
    customs_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0"),
        validators=_PERCENT_VALIDATORS,
        help_text="Customs duty rate as percentage",
    )
    local_tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0"),
        validators=_PERCENT_VALIDATORS,
        help_text="VAT/GST rate as percentage",
    )
    classification_confidence = models.FloatField(
        default=1.0,
        validators=[MinValueValidator(0.0), MaxValueValidator(1.0)],
    )
    is_active = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Meta options for HSNCode model."""

        db_table = "hsn_codes"
        ordering = ["hsn_code"]
        verbose_name = "HSN Code"
        verbose_name_plural = "HSN Codes"

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.hsn_code} - {self.description}"


class ShippingRoute(models.Model):
    """Shipping and handling charges between two countries, in the origin currency."""

    origin_country = models.CharField(max_length=2)
    destination_country = models.CharField(max_length=2)
    merchant_shipping = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0"), validators=_NON_NEGATIVE
    )
    standard_rate_per_kg = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("25"), validators=_NON_NEGATIVE
    )
    express_rate_per_kg = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("40"), validators=_NON_NEGATIVE
    )
    economy_rate_per_kg = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("15"), validators=_NON_NEGATIVE
    )
    minimum_international = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("25"), validators=_NON_NEGATIVE
    )
    domestic_urban = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0"), validators=_NON_NEGATIVE
    )
    domestic_rural = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0"), validators=_NON_NEGATIVE
    )
    handling_fixed = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("10"), validators=_NON_NEGATIVE
    )
    handling_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("2"), validators=_PERCENT_VALIDATORS
    )
    is_active = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Meta options for ShippingRoute model."""

        db_table = "shipping_routes"
        ordering = ["origin_country", "destination_country"]
        constraints = [
            models.UniqueConstraint(
                fields=["origin_country", "destination_country"],
                name="unique_shipping_route",
            )
        ]
        verbose_name = "Shipping Route"
        verbose_name_plural = "Shipping Routes"

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.origin_country} → {self.destination_country}"

    def to_route_rates(self) -> RouteRates:
        """Return the row as a RouteRates value."""
        return RouteRates(
            origin_country=self.origin_country.upper(),
            destination_country=self.destination_country.upper(),
            merchant_shipping=Decimal(self.merchant_shipping),
            standard_rate_per_kg=Decimal(self.standard_rate_per_kg),
            express_rate_per_kg=Decimal(self.express_rate_per_kg),
            economy_rate_per_kg=Decimal(self.economy_rate_per_kg),
            minimum_international=Decimal(self.minimum_international),
            domestic_urban=Decimal(self.domestic_urban),
            domestic_rural=Decimal(self.domestic_rural),
            handling_fixed=Decimal(self.handling_fixed),
            handling_percent=Decimal(self.handling_percent),
        )


class PaymentGateway(models.Model):
    """Payment gateway fee schedule."""

    code = models.CharField(max_length=20, unique=True, help_text="Gateway code, e.g. 'stripe'")
    name = models.CharField(max_length=100)
    fee_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0"), validators=_PERCENT_VALIDATORS
    )
    fee_fixed = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0"), validators=_NON_NEGATIVE
    )
    is_configured = models.BooleanField(
        default=False,
        help_text="Whether credentials and fees are complete",
    )
    is_active = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Meta options for PaymentGateway model."""

        db_table = "payment_gateways"
        ordering = ["code"]
        verbose_name = "Payment Gateway"
        verbose_name_plural = "Payment Gateways"

    def __str__(self) -> str:
        """Return string representation."""
        return self.name

    def to_gateway_fees(self) -> GatewayFees:
        """Return the row as a GatewayFees value."""
        return GatewayFees(
            code=self.code.lower(),
            name=self.name,
            fee_percent=Decimal(self.fee_percent),
            fee_fixed=Decimal(self.fee_fixed),
            is_configured=self.is_configured,
        )


class TaxRateOverrideRule(models.Model):
    """Administrative replacement of registry duty/tax rates."""

    class Scope(models.TextChoices):
        """What the override applies to."""

        GLOBAL = OverrideScope.GLOBAL.value, "Global"
        CATEGORY = OverrideScope.CATEGORY.value, "Category"
        CODE = OverrideScope.CODE.value, "HSN code"

    scope = models.CharField(max_length=10, choices=Scope.choices)
    identifier = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Category name or HSN code (empty for global)",
    )
    duty_rate_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=_PERCENT_VALIDATORS,
    )
    tax_rate_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=_PERCENT_VALIDATORS,
    )
    reason = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Meta options for TaxRateOverrideRule model."""

        db_table = "tax_rate_overrides"
        ordering = ["scope", "identifier"]
        verbose_name = "Tax Rate Override"
        verbose_name_plural = "Tax Rate Overrides"

    def __str__(self) -> str:
        """Return string representation."""
        return self.to_override().label

    def to_override(self) -> TaxRateOverride:
        """Return the row as a TaxRateOverride value."""
        return TaxRateOverride(
            scope=OverrideScope(self.scope),
            identifier=self.identifier,
            duty_rate_percent=(
                Decimal(self.duty_rate_percent) if self.duty_rate_percent is not None else None
            ),
            tax_rate_percent=(
                Decimal(self.tax_rate_percent) if self.tax_rate_percent is not None else None
            ),
        )
