"""Reference data and builders shared by the test modules."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from services.currency import ExchangeRate
from services.taxes import LineItem

TODAY = date(2026, 6, 1)

EXCHANGE_RATES = [
    ExchangeRate("NP", "NPR", Decimal("133.0")),
    ExchangeRate("IN", "INR", Decimal("83.0")),
    ExchangeRate("US", "USD", Decimal("1.0")),
    ExchangeRate("CN", "CNY", Decimal("7.2")),
]

KURTA_ROW: dict[str, Any] = {
    "code": "6211",
    "description": "Kurtas and ethnic garments",
    "category": "clothing",
    "minimum_valuation_usd": "10",
    "requires_conversion": True,
    "duty_rate_percent": "12",
    "tax_rate_percent": "13",
    "classification_confidence": 0.95,
}

BOOK_ROW: dict[str, Any] = {
    "code": "4901",
    "description": "Printed books",
    "category": "books",
    "duty_rate_percent": "0",
    "tax_rate_percent": "0",
}

PHONE_ROW: dict[str, Any] = {
    "code": "8517",
    "description": "Mobile phones",
    "category": "electronics",
    "minimum_valuation_usd": "50",
    "requires_conversion": True,
    "duty_rate_percent": "15",
    "tax_rate_percent": "13",
    "classification_confidence": 0.9,
}

CLASSIFICATION_ROWS = [KURTA_ROW, BOOK_ROW, PHONE_ROW]


def make_item(
    item_id: str = "kurta-1",
    code: str = "6211",
    price: str = "500",
    quantity: int = 1,
    weight: str = "1",
    name: str = "Cotton kurta",
) -> LineItem:
    """Build a line item priced in the origin currency."""
    return LineItem(
        id=item_id,
        name=name,
        classification_code=code,
        declared_unit_price=Decimal(price),
        quantity=quantity,
        weight_kg=Decimal(weight),
    )
