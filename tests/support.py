"""
Shared test data: identifiers, record factory and an in-memory PriceStore.
"""
from typing import Optional

from service_pricing.engine.models import EntityType, PriceRecord
from service_pricing.errors import PriceStoreError


PRODUCT_ID = "550e8400-e29b-41d4-a716-446655440001"
SERVICE_POINT_ID = "550e8400-e29b-41d4-a716-446655440002"
LOCATION_ID = "550e8400-e29b-41d4-a716-446655440003"
OTHER_PRODUCT_ID = "550e8400-e29b-41d4-a716-446655440004"


def make_record(entity_type: EntityType, entity_id: str, amount: float,
                product_id: str = PRODUCT_ID, **kwargs) -> PriceRecord:
    return PriceRecord(
        id=kwargs.pop('id', f"{entity_type.value.lower()}-{entity_id[-4:]}-{product_id[-4:]}"),
        entity_type=entity_type,
        entity_id=entity_id,
        product_id=product_id,
        amount=amount,
        currency=kwargs.pop('currency', 'EUR'),
        **kwargs,
    )


class FakePriceStore:
    """In-memory PriceStore that records every lookup."""

    def __init__(self, records: Optional[list[PriceRecord]] = None, fail_on_call: Optional[int] = None):
        self.records = list(records or [])
        self.calls: list[tuple[EntityType, str, str]] = []
        self.fail_on_call = fail_on_call

    def find_price(self, entity_type, entity_id, product_id, on_date=None):
        self.calls.append((entity_type, entity_id, product_id))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise PriceStoreError("connection refused")
        for record in self.records:
            if (record.entity_type == entity_type and record.entity_id == entity_id
                    and record.product_id == product_id):
                return record
        return None
