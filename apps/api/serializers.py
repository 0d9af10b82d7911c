"""API serializers for quote calculation."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from rest_framework import serializers

from services.quotes.types import (
    DeliveryZone,
    DiscountKind,
    DiscountScope,
    DiscountSpec,
    QuoteOptions,
    RouteParams,
    ShippingMethod,
)
from services.taxes.types import LineItem


class LineItemSerializer(serializers.Serializer):
    """
    Serializer for a quote line item.

    Price and quantity are only type-checked here; their domain limits are
    enforced by the tax calculator so the error names the offending item.
    """

    id = serializers.CharField(max_length=64)
    name = serializers.CharField(max_length=255, required=False, default="")
    classification_code = serializers.CharField(max_length=32)
    declared_unit_price = serializers.DecimalField(max_digits=16, decimal_places=4)
    quantity = serializers.IntegerField()
    weight_kg = serializers.DecimalField(
        max_digits=10,
        decimal_places=3,
        required=False,
        default=Decimal("0"),
    )


class RouteSerializer(serializers.Serializer):
    """Serializer for route parameters."""

    origin_country = serializers.CharField(max_length=2)
    destination_country = serializers.CharField(max_length=2)
    shipping_method = serializers.ChoiceField(
        choices=[m.value for m in ShippingMethod],
        default=ShippingMethod.STANDARD.value,
    )
    delivery_zone = serializers.ChoiceField(
        choices=[z.value for z in DeliveryZone],
        default=DeliveryZone.URBAN.value,
    )
    payment_gateway = serializers.CharField(max_length=20, default="stripe")
    display_country = serializers.CharField(
        max_length=2,
        required=False,
        allow_null=True,
        default=None,
    )


class DiscountSerializer(serializers.Serializer):
    """Serializer for a discount."""

    scope = serializers.ChoiceField(choices=[s.value for s in DiscountScope])
    kind = serializers.ChoiceField(choices=[k.value for k in DiscountKind])
    value = serializers.DecimalField(
        max_digits=16,
        decimal_places=4,
        required=False,
        default=Decimal("0"),
    )
    code = serializers.CharField(max_length=50, required=False, allow_null=True, default=None)


class QuoteOptionsSerializer(serializers.Serializer):
    """Serializer for calculation options."""

    insurance_enabled = serializers.BooleanField(default=False)


class QuoteRequestSerializer(serializers.Serializer):
    """Serializer for a quote calculation request."""

    items = LineItemSerializer(many=True, allow_empty=True)
    route = RouteSerializer()
    discounts = DiscountSerializer(many=True, required=False, default=list)
    options = QuoteOptionsSerializer(required=False, default=dict)

    def to_domain(
        self,
    ) -> tuple[list[LineItem], RouteParams, list[DiscountSpec], QuoteOptions]:
        """Convert validated data into engine inputs."""
        data: dict[str, Any] = self.validated_data
        items = [
            LineItem(
                id=item["id"],
                name=item["name"],
                classification_code=item["classification_code"],
                declared_unit_price=item["declared_unit_price"],
                quantity=item["quantity"],
                weight_kg=item["weight_kg"],
            )
            for item in data["items"]
        ]
        route_data = data["route"]
        route = RouteParams(
            origin_country=route_data["origin_country"].upper(),
            destination_country=route_data["destination_country"].upper(),
            shipping_method=ShippingMethod(route_data["shipping_method"]),
            delivery_zone=DeliveryZone(route_data["delivery_zone"]),
            payment_gateway=route_data["payment_gateway"].lower(),
            display_country=(
                route_data["display_country"].upper() if route_data["display_country"] else None
            ),
        )
        discounts = [
            DiscountSpec(
                scope=DiscountScope(spec["scope"]),
                kind=DiscountKind(spec["kind"]),
                value=spec["value"],
                code=spec["code"],
            )
            for spec in data["discounts"]
        ]
        options = QuoteOptions(
            insurance_enabled=data["options"].get("insurance_enabled", False),
        )
        return items, route, discounts, options


class HealthCheckSerializer(serializers.Serializer):
    """Serializer for health check response."""

    status = serializers.CharField()
    version = serializers.CharField()
    services = serializers.DictField(child=serializers.BooleanField())
