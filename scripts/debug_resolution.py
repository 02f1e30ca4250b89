"""
Print the resolution trace for a product in a given context.

Usage:
    python scripts/debug_resolution.py PRODUCT_ID [--service-point ID] [--location ID] [--date YYYY-MM-DD]
"""
import argparse
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from service_pricing.config.settings import get_settings
from service_pricing.engine import PriceResolver, PricingContext
from service_pricing.store.csv_store import CsvPriceStore


def debug():
    parser = argparse.ArgumentParser(description="Debug hierarchical price resolution")
    parser.add_argument("product_id")
    parser.add_argument("--service-point", dest="service_point_id")
    parser.add_argument("--location", dest="location_id")
    parser.add_argument("--date", dest="on_date")
    args = parser.parse_args()

    settings = get_settings()
    store = CsvPriceStore(settings.prices_csv)
    print(f"Loaded {store.count()} prices from {settings.prices_csv}")
    print("\nPrices for this product:")
    print(store.df[store.df['product_id'] == args.product_id][['entity_type', 'entity_id', 'amount', 'currency', 'start_date', 'end_date']])

    context = PricingContext(
        product_id=args.product_id,
        service_point_id=args.service_point_id,
        location_id=args.location_id,
        on_date=args.on_date,
    )
    result = PriceResolver(store).resolve_price(context)

    print("\n--- Resolution Trace ---")
    print(result.get_trace_text())
    print(f"\nLevel applied: {result.level_applied.value}")
    if result.price:
        print(f"Price: {result.price.amount:.2f} {result.price.currency} (id {result.price.id})")
    else:
        print("Price: none configured")


if __name__ == "__main__":
    debug()
