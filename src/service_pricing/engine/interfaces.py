"""Lookup capability the resolver depends on."""
from typing import Optional, Protocol, runtime_checkable

from .models import EntityType, PriceRecord


@runtime_checkable
class PriceStore(Protocol):
    """
    Finds the active price for an entity-type/entity-id/product-id triple.

    Implementations raise PriceStoreError when the storage is unreachable
    or the query is malformed.
    """

    def find_price(
        self,
        entity_type: EntityType,
        entity_id: str,
        product_id: str,
        on_date: Optional[str] = None,
    ) -> Optional[PriceRecord]:
        ...
