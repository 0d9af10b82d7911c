"""Admin configuration for pricing app."""

from django.contrib import admin

from .models import CountrySetting, HSNCode, PaymentGateway, ShippingRoute, TaxRateOverrideRule


@admin.register(CountrySetting)
class CountrySettingAdmin(admin.ModelAdmin):
    """Admin configuration for CountrySetting model."""

    list_display = (
        "country_name",
        "country_code",
        "currency_code",
        "rate_from_usd",
        "tax_system",
        "is_active",
    )
    list_filter = ("is_active", "tax_system")
    search_fields = ("country_name", "country_code", "currency_code")
    readonly_fields = ("updated_at",)
    ordering = ("country_name",)


@admin.register(HSNCode)
class HSNCodeAdmin(admin.ModelAdmin):
    """Admin configuration for HSNCode model."""

    list_display = (
        "hsn_code",
        "description",
        "category",
        "minimum_valuation_usd",
        "requires_currency_conversion",
        "customs_rate",
        "local_tax_rate",
        "is_active",
    )
    list_filter = ("category", "requires_currency_conversion", "is_active")
    search_fields = ("hsn_code", "description", "category")
    readonly_fields = ("updated_at",)
    ordering = ("hsn_code",)


@admin.register(ShippingRoute)
class ShippingRouteAdmin(admin.ModelAdmin):
    """Admin configuration for ShippingRoute model."""

    list_display = (
        "origin_country",
        "destination_country",
        "merchant_shipping",
        "standard_rate_per_kg",
        "minimum_international",
        "handling_fixed",
        "is_active",
    )
    list_filter = ("origin_country", "destination_country", "is_active")
    readonly_fields = ("updated_at",)


@admin.register(PaymentGateway)
class PaymentGatewayAdmin(admin.ModelAdmin):
    """Admin configuration for PaymentGateway model."""

    list_display = ("code", "name", "fee_percent", "fee_fixed", "is_configured", "is_active")
    list_filter = ("is_configured", "is_active")
    search_fields = ("code", "name")


@admin.register(TaxRateOverrideRule)
class TaxRateOverrideRuleAdmin(admin.ModelAdmin):
    """Admin configuration for TaxRateOverrideRule model."""

    list_display = ("scope", "identifier", "duty_rate_percent", "tax_rate_percent", "is_active")
    list_filter = ("scope", "is_active")
    search_fields = ("identifier", "reason")
