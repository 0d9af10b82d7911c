#!/usr/bin/env python
"""
Pricing data seeding script.

Creates the database tables and loads representative reference data:
country exchange rates, HSN codes, shipping routes and payment gateways.
Existing rows are updated in place, so the script can be re-run.

Usage:
    cd /path/to/crossborder_quotes
    python scripts/seed_pricing_data.py [--skip-migrate]
"""

import argparse
import os
import sys
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

COUNTRIES = [
    # (code, name, currency, rate_from_usd, tax_system)
    ("NP", "Nepal", "NPR", "133.0", "vat"),
    ("IN", "India", "INR", "83.0", "gst"),
    ("US", "United States", "USD", "1.0", "sales_tax"),
    ("CN", "China", "CNY", "7.2", "vat"),
    ("GB", "United Kingdom", "GBP", "0.79", "vat"),
]

HSN_CODES = [
    # (code, description, category, minimum_usd, requires_conversion, duty, tax, confidence)
    ("6211", "Kurtas and ethnic garments", "clothing", "10", True, "12", "13", 0.95),
    ("6403", "Footwear with leather uppers", "footwear", "8", True, "20", "13", 0.9),
    ("8517", "Mobile phones", "electronics", "50", True, "15", "13", 0.9),
    ("4901", "Printed books", "books", None, False, "0", "0", 1.0),
    ("3304", "Beauty and make-up preparations", "cosmetics", None, False, "30", "13", 0.85),
]

ROUTES = [
    # Amounts in the origin currency:
    # (origin, destination, merchant, standard/kg, express/kg, economy/kg, minimum,
    #  domestic urban, domestic rural, handling fixed, handling %)
    ("US", "NP", "0", "25", "40", "15", "25", "3", "7", "10", "2"),
    ("US", "IN", "0", "25", "40", "15", "25", "5", "10", "10", "2"),
    ("IN", "NP", "100", "2075", "3320", "1245", "2075", "250", "580", "830", "2"),
    ("NP", "IN", "150", "3325", "5320", "1995", "3325", "665", "1330", "1330", "2"),
    ("CN", "NP", "20", "180", "288", "108", "180", "22", "50", "72", "2"),
]

GATEWAYS = [
    # (code, name, fee %, fee fixed, configured)
    ("stripe", "Stripe", "2.9", "0.30", True),
    ("paypal", "PayPal", "2.9", "0.30", True),
    ("esewa", "eSewa", "2.0", "0", True),
    ("khalti", "Khalti", "2.5", "0", True),
    ("payu", "PayU", "2.0", "0", False),
]


def setup_django() -> None:
    """Setup Django."""
    load_dotenv(project_root / ".env")
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings.development")

    import django

    django.setup()


def create_tables() -> None:
    """Create the database tables."""
    from django.core.management import call_command

    print("\nCreating tables...")
    call_command("migrate", run_syncdb=True, verbosity=1)
    print("Tables ready.")


def seed_countries() -> None:
    """Load country exchange rates."""
    from apps.pricing.models import CountrySetting

    for code, name, currency, rate, tax_system in COUNTRIES:
        CountrySetting.objects.update_or_create(
            country_code=code,
            defaults={
                "country_name": name,
                "currency_code": currency,
                "rate_from_usd": Decimal(rate),
                "tax_system": tax_system,
                "is_active": True,
            },
        )
    print(f"Seeded {len(COUNTRIES)} countries.")


def seed_hsn_codes() -> None:
    """Load HSN codes."""
    from apps.pricing.models import HSNCode

    for code, description, category, minimum, conversion, duty, tax, confidence in HSN_CODES:
        HSNCode.objects.update_or_create(
            hsn_code=code,
            defaults={
                "description": description,
                "category": category,
                "minimum_valuation_usd": Decimal(minimum) if minimum is not None else None,
                "requires_currency_conversion": conversion,
                "customs_rate": Decimal(duty),
                "local_tax_rate": Decimal(tax),
                "classification_confidence": confidence,
                "is_active": True,
            },
        )
    print(f"Seeded {len(HSN_CODES)} HSN codes.")


def seed_routes() -> None:
    """Load shipping routes."""
    from apps.pricing.models import ShippingRoute

    for origin, destination, *amounts in ROUTES:
        merchant, standard, express, economy, minimum, urban, rural, fixed, percent = amounts
        ShippingRoute.objects.update_or_create(
            origin_country=origin,
            destination_country=destination,
            defaults={
                "merchant_shipping": Decimal(merchant),
                "standard_rate_per_kg": Decimal(standard),
                "express_rate_per_kg": Decimal(express),
                "economy_rate_per_kg": Decimal(economy),
                "minimum_international": Decimal(minimum),
                "domestic_urban": Decimal(urban),
                "domestic_rural": Decimal(rural),
                "handling_fixed": Decimal(fixed),
                "handling_percent": Decimal(percent),
                "is_active": True,
            },
        )
    print(f"Seeded {len(ROUTES)} shipping routes.")


def seed_gateways() -> None:
    """Load payment gateways."""
    from apps.pricing.models import PaymentGateway

    for code, name, percent, fixed, configured in GATEWAYS:
        PaymentGateway.objects.update_or_create(
            code=code,
            defaults={
                "name": name,
                "fee_percent": Decimal(percent),
                "fee_fixed": Decimal(fixed),
                "is_configured": configured,
                "is_active": True,
            },
        )
    print(f"Seeded {len(GATEWAYS)} payment gateways.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed pricing reference data")
    parser.add_argument(
        "--skip-migrate",
        action="store_true",
        help="Do not create tables before seeding",
    )
    args = parser.parse_args()

    setup_django()

    if not args.skip_migrate:
        create_tables()

    seed_countries()
    seed_hsn_codes()
    seed_routes()
    seed_gateways()

    print("\nPricing data seeded.")
