"""Store subpackage - price table access."""
from .base import PriceStore, PriceRepository
from .csv_store import CsvPriceStore

__all__ = ['PriceStore', 'PriceRepository', 'CsvPriceStore']
