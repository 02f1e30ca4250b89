"""
Create a price from the command line.

Usage:
    python scripts/create_price.py PRODUCT_ID AMOUNT [--service-point ID | --location ID] [--notes TEXT]
"""
import argparse
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from service_pricing.config.settings import get_settings
from service_pricing.errors import PricingError
from service_pricing.services.price_service import PriceService
from service_pricing.store.csv_store import CsvPriceStore


def main():
    parser = argparse.ArgumentParser(description="Create a hierarchical price")
    parser.add_argument("product_id")
    parser.add_argument("amount", type=float)
    scope = parser.add_mutually_exclusive_group()
    scope.add_argument("--service-point", dest="service_point_id")
    scope.add_argument("--location", dest="location_id")
    parser.add_argument("--notes")
    args = parser.parse_args()

    settings = get_settings()
    service = PriceService(CsvPriceStore(settings.prices_csv), default_currency=settings.default_currency)

    try:
        if args.service_point_id:
            created = service.create_service_point_price(args.product_id, args.service_point_id, args.amount, args.notes)
        elif args.location_id:
            created = service.create_location_price(args.product_id, args.location_id, args.amount, args.notes)
        else:
            created = service.create_base_price(args.product_id, args.amount, args.notes)
    except PricingError as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    print(f"✅ Created {created.level} price {created.id}: {created.amount:.2f} {created.currency}")


if __name__ == "__main__":
    main()
