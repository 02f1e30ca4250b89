"""
Shared store, resolver and service instances for the API.

Endpoints receive these through FastAPI dependencies so tests can swap them
with app.dependency_overrides.
"""
from typing import Optional

from ..config.settings import get_settings
from ..engine import PriceResolver
from ..services.price_service import PriceService
from ..store.csv_store import CsvPriceStore

_store: Optional[CsvPriceStore] = None


def get_store() -> CsvPriceStore:
    """Get the process-wide price store, loading it on first use."""
    global _store
    if _store is None:
        _store = CsvPriceStore(get_settings().prices_csv)
    return _store


def get_resolver() -> PriceResolver:
    return PriceResolver(get_store())


def get_price_service() -> PriceService:
    settings = get_settings()
    return PriceService(
        get_store(),
        default_currency=settings.default_currency,
        page_limit=settings.page_limit,
    )


def reset_state():
    """Drop the cached store (e.g. after the CSV was edited by hand)."""
    global _store
    _store = None
