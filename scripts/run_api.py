"""
Start the Service Pricing API with uvicorn.

Usage:
    python scripts/run_api.py [--reload]
"""
import argparse
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

import uvicorn

from service_pricing.config.settings import get_settings


def main():
    parser = argparse.ArgumentParser(description="Run the Service Pricing API")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    args = parser.parse_args()

    settings = get_settings()
    print(f"Starting Service Pricing API on {settings.host}:{settings.port} (prices: {settings.prices_csv})")
    try:
        uvicorn.run(
            "service_pricing.api.main:app",
            host=settings.host,
            port=settings.port,
            reload=args.reload,
            reload_dirs=[str(settings.project_root / 'src')] if args.reload else None,
            log_level=settings.log_level.lower(),
        )
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
