"""Tests for quote request validation."""

from __future__ import annotations

from decimal import Decimal

from services.quotes import (
    DiscountKind,
    DiscountScope,
    DiscountSpec,
    RouteParams,
    validate_quote_request,
)
from tests.factories import make_item

ROUTE = RouteParams(origin_country="NP", destination_country="IN")


class TestValidateQuoteRequest:
    """Tests for validate_quote_request."""

    def test_valid_request(self) -> None:
        """A well-formed request has no violations."""
        assert validate_quote_request([make_item()], ROUTE) == []

    def test_empty_items(self) -> None:
        """A quote needs at least one item."""
        violations = validate_quote_request([], ROUTE)

        assert [v.field for v in violations] == ["items"]

    def test_duplicate_item_ids(self) -> None:
        """Item ids must be unique."""
        violations = validate_quote_request([make_item("a"), make_item("a")], ROUTE)

        assert [v.field for v in violations] == ["items.1.id"]
        assert "duplicate" in violations[0].message

    def test_blank_fields(self) -> None:
        """Blank ids and codes should be reported per item."""
        violations = validate_quote_request([make_item(item_id="", code=" ")], ROUTE)

        assert [v.field for v in violations] == ["items.0.id", "items.0.classification_code"]

    def test_negative_weight(self) -> None:
        """Weights cannot be negative."""
        violations = validate_quote_request([make_item(weight="-1")], ROUTE)

        assert [v.field for v in violations] == ["items.0.weight_kg"]

    def test_price_and_quantity_left_to_calculator(self) -> None:
        """Price and quantity limits are not request-shape checks."""
        assert validate_quote_request([make_item(price="-1", quantity=0)], ROUTE) == []

    def test_country_codes(self) -> None:
        """Country codes must be two uppercase letters."""
        route = RouteParams(origin_country="np", destination_country="IND", display_country="1")

        violations = validate_quote_request([make_item()], route)

        assert [v.field for v in violations] == [
            "route.origin_country",
            "route.destination_country",
            "route.display_country",
        ]

    def test_unknown_enums_and_gateway(self) -> None:
        """Raw strings in place of enums and a blank gateway are reported."""
        route = RouteParams(
            origin_country="NP",
            destination_country="IN",
            shipping_method="teleport",  # type: ignore[arg-type]
            delivery_zone="orbit",  # type: ignore[arg-type]
            payment_gateway=" ",
        )

        violations = validate_quote_request([make_item()], route)

        assert [v.field for v in violations] == [
            "route.shipping_method",
            "route.delivery_zone",
            "route.payment_gateway",
        ]

    def test_free_order_discount(self) -> None:
        """Free applies to shipping only."""
        discounts = [DiscountSpec(DiscountScope.ORDER, DiscountKind.FREE)]

        violations = validate_quote_request([make_item()], ROUTE, discounts)

        assert [v.field for v in violations] == ["discounts.0.kind"]

    def test_non_finite_discount(self) -> None:
        """Discount values must be finite."""
        discounts = [DiscountSpec(DiscountScope.ORDER, DiscountKind.FIXED, Decimal("Infinity"))]

        violations = validate_quote_request([make_item()], ROUTE, discounts)

        assert [v.field for v in violations] == ["discounts.0.value"]

    def test_collects_every_violation(self) -> None:
        """Violations across items, route and discounts are all listed."""
        route = RouteParams(origin_country="", destination_country="IN", payment_gateway="")
        discounts = [DiscountSpec(DiscountScope.ORDER, DiscountKind.FREE)]

        violations = validate_quote_request(
            [make_item("a", weight="-1"), make_item("a")], route, discounts
        )

        assert [v.field for v in violations] == [
            "items.0.weight_kg",
            "items.1.id",
            "route.origin_country",
            "route.payment_gateway",
            "discounts.0.kind",
        ]
