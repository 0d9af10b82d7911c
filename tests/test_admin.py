"""Tests for Django admin configurations."""

from __future__ import annotations

import pytest
from django.contrib import admin
from django.test import Client

from apps.pricing.admin import (
    CountrySettingAdmin,
    HSNCodeAdmin,
    PaymentGatewayAdmin,
    ShippingRouteAdmin,
    TaxRateOverrideRuleAdmin,
)
from apps.pricing.models import (
    CountrySetting,
    HSNCode,
    PaymentGateway,
    ShippingRoute,
    TaxRateOverrideRule,
)


class TestPricingAdminRegistration:
    """Tests for pricing model registration."""

    @pytest.mark.parametrize(
        ("model", "model_admin"),
        [
            (CountrySetting, CountrySettingAdmin),
            (HSNCode, HSNCodeAdmin),
            (ShippingRoute, ShippingRouteAdmin),
            (PaymentGateway, PaymentGatewayAdmin),
            (TaxRateOverrideRule, TaxRateOverrideRuleAdmin),
        ],
    )
    def test_registered(self, model: type, model_admin: type) -> None:
        """Every reference table should be editable in the admin."""
        assert isinstance(admin.site._registry[model], model_admin)

    def test_list_display_fields_exist(self) -> None:
        """list_display should only name real fields."""
        for model, model_admin in admin.site._registry.items():
            if model._meta.app_label != "pricing":
                continue
            field_names = {field.name for field in model._meta.get_fields()}
            for name in model_admin.list_display:
                assert name in field_names, f"{model.__name__}.{name}"


@pytest.mark.django_db
class TestPricingAdminViews:
    """Tests for the admin change list pages."""

    @pytest.fixture()
    def admin_client(self, django_user_model: type) -> Client:
        """Create a client logged in as a superuser."""
        user = django_user_model.objects.create_superuser(
            username="admin", email="admin@example.com", password="adminpass123"
        )
        client = Client()
        client.force_login(user)
        return client

    @pytest.mark.parametrize(
        "url",
        [
            "/admin/pricing/countrysetting/",
            "/admin/pricing/hsncode/",
            "/admin/pricing/shippingroute/",
            "/admin/pricing/paymentgateway/",
            "/admin/pricing/taxrateoverriderule/",
        ],
    )
    def test_changelist_renders(self, admin_client: Client, url: str) -> None:
        """Each change list should render."""
        TaxRateOverrideRule.objects.create(scope="global", tax_rate_percent=0)

        response = admin_client.get(url)

        assert response.status_code == 200
