"""
Store interfaces.

PriceStore is all the resolver needs. PriceRepository is the wider contract
used by price administration.
"""
from typing import Any, Optional, Protocol, runtime_checkable

from ..engine.interfaces import PriceStore
from ..engine.models import EntityType, PriceFilters, PriceRecord

__all__ = ['PriceStore', 'PriceRepository']


@runtime_checkable
class PriceRepository(PriceStore, Protocol):
    """Read/write access to the price table."""

    def get(self, price_id: str) -> Optional[PriceRecord]:
        ...

    def list_prices(self, filters: Optional[PriceFilters] = None) -> tuple[list[PriceRecord], int]:
        """Return one page of matching records and the total match count."""
        ...

    def all_prices(self) -> list[PriceRecord]:
        ...

    def add(self, record: PriceRecord) -> PriceRecord:
        ...

    def update(self, price_id: str, changes: dict[str, Any]) -> Optional[PriceRecord]:
        ...

    def delete(self, price_id: str) -> bool:
        ...

    def exists_active(
        self,
        entity_type: EntityType,
        entity_id: str,
        product_id: str,
        exclude_id: Optional[str] = None,
        on_date: Optional[str] = None,
    ) -> bool:
        ...
