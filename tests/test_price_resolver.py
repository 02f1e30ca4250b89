"""
Hierarchical price resolution: service point beats location beats base.
"""
import pytest

from service_pricing.engine import PriceResolver, PricingContext
from service_pricing.engine.models import EntityType, LevelApplied, level_applied_for
from service_pricing.errors import PriceStoreError

from support import (
    FakePriceStore,
    LOCATION_ID,
    PRODUCT_ID,
    SERVICE_POINT_ID,
    make_record,
)


@pytest.fixture
def full_store():
    """A product priced at every level."""
    return FakePriceStore([
        make_record(EntityType.SERVICE_POINT, SERVICE_POINT_ID, 30.0),
        make_record(EntityType.LOCATION, LOCATION_ID, 25.0),
        make_record(EntityType.PRODUCT, PRODUCT_ID, 20.0),
    ])


def test_service_point_price_wins(full_store):
    """Scenario: SP, location and base all exist -> SP price, one lookup."""
    resolver = PriceResolver(full_store)
    context = PricingContext(product_id=PRODUCT_ID, service_point_id=SERVICE_POINT_ID, location_id=LOCATION_ID)

    result = resolver.resolve_price(context)

    assert result.level_applied == LevelApplied.SERVICE_POINT
    assert result.price.amount == 30.0
    assert len(full_store.calls) == 1, "Lookup must stop at the first hit"


def test_location_price_without_service_point(full_store):
    """Scenario: no service point given -> location price, base ignored."""
    result = PriceResolver(full_store).resolve_price(
        PricingContext(product_id=PRODUCT_ID, location_id=LOCATION_ID)
    )

    assert result.level_applied == LevelApplied.LOCATION
    assert result.price.amount == 25.0
    assert result.service_point_id is None
    assert result.location_id == LOCATION_ID


def test_location_price_when_service_point_unmatched():
    store = FakePriceStore([
        make_record(EntityType.LOCATION, LOCATION_ID, 25.0),
        make_record(EntityType.PRODUCT, PRODUCT_ID, 20.0),
    ])
    result = PriceResolver(store).resolve_price(
        PricingContext(product_id=PRODUCT_ID, service_point_id=SERVICE_POINT_ID, location_id=LOCATION_ID)
    )

    assert result.level_applied == LevelApplied.LOCATION
    assert [call[0] for call in store.calls] == [EntityType.SERVICE_POINT, EntityType.LOCATION]


def test_base_price_with_product_only():
    """Scenario: only product id -> exactly one base lookup."""
    store = FakePriceStore([make_record(EntityType.PRODUCT, PRODUCT_ID, 20.0)])

    result = PriceResolver(store).resolve_price(PricingContext(product_id=PRODUCT_ID))

    assert result.level_applied == LevelApplied.BASE
    assert result.price.amount == 20.0
    assert store.calls == [(EntityType.PRODUCT, PRODUCT_ID, PRODUCT_ID)]


def test_no_price_at_any_level(fake_store):
    """Scenario: nothing configured -> NONE, not an error."""
    result = PriceResolver(fake_store).resolve_price(PricingContext(product_id=PRODUCT_ID))

    assert result.price is None
    assert result.level_applied == LevelApplied.NONE
    assert result.product_id == PRODUCT_ID


def test_unmatched_service_point_falls_to_base():
    """Scenario: SP given but unpriced, no location -> base, location never queried."""
    store = FakePriceStore([make_record(EntityType.PRODUCT, PRODUCT_ID, 20.0)])

    result = PriceResolver(store).resolve_price(
        PricingContext(product_id=PRODUCT_ID, service_point_id=SERVICE_POINT_ID)
    )

    assert result.level_applied == LevelApplied.BASE
    assert [call[0] for call in store.calls] == [EntityType.SERVICE_POINT, EntityType.PRODUCT]


def test_store_failure_propagates():
    """Scenario: store down on first lookup -> error reaches caller, never NONE."""
    store = FakePriceStore([make_record(EntityType.PRODUCT, PRODUCT_ID, 20.0)], fail_on_call=1)

    with pytest.raises(PriceStoreError, match="connection refused"):
        PriceResolver(store).resolve_price(
            PricingContext(product_id=PRODUCT_ID, service_point_id=SERVICE_POINT_ID)
        )


def test_store_failure_on_fallback_lookup_propagates():
    store = FakePriceStore([make_record(EntityType.PRODUCT, PRODUCT_ID, 20.0)], fail_on_call=2)

    with pytest.raises(PriceStoreError):
        PriceResolver(store).resolve_price(
            PricingContext(product_id=PRODUCT_ID, location_id=LOCATION_ID)
        )


def test_resolution_is_idempotent(full_store):
    resolver = PriceResolver(full_store)
    context = PricingContext(product_id=PRODUCT_ID, location_id=LOCATION_ID)

    first = resolver.resolve_price(context)
    second = resolver.resolve_price(context)

    assert first.to_response() == second.to_response()


def test_specificity_beats_cheaper_price():
    """A cheaper base price never overrides a more specific one."""
    store = FakePriceStore([
        make_record(EntityType.SERVICE_POINT, SERVICE_POINT_ID, 99.0),
        make_record(EntityType.PRODUCT, PRODUCT_ID, 1.0),
    ])
    result = PriceResolver(store).resolve_price(
        PricingContext(product_id=PRODUCT_ID, service_point_id=SERVICE_POINT_ID)
    )
    assert result.price.amount == 99.0


def test_unknown_level_tag_degrades_to_none():
    store = FakePriceStore([make_record(EntityType.PRODUCT, PRODUCT_ID, 20.0, level="regional")])

    result = PriceResolver(store).resolve_price(PricingContext(product_id=PRODUCT_ID))

    assert result.price is not None
    assert result.level_applied == LevelApplied.NONE


@pytest.mark.parametrize("tag,expected", [
    ("service_point", LevelApplied.SERVICE_POINT),
    ("location", LevelApplied.LOCATION),
    ("base", LevelApplied.BASE),
    ("BASE", LevelApplied.NONE),
    ("", LevelApplied.NONE),
    (None, LevelApplied.NONE),
])
def test_level_mapping(tag, expected):
    assert level_applied_for(tag) == expected


def test_applicable_amount(full_store, fake_store):
    assert PriceResolver(full_store).applicable_amount(PricingContext(product_id=PRODUCT_ID)) == 20.0
    assert PriceResolver(fake_store).applicable_amount(PricingContext(product_id=PRODUCT_ID)) is None


def test_trace_records_each_level():
    store = FakePriceStore([make_record(EntityType.PRODUCT, PRODUCT_ID, 20.0)])
    result = PriceResolver(store).resolve_price(
        PricingContext(product_id=PRODUCT_ID, service_point_id=SERVICE_POINT_ID, location_id=LOCATION_ID)
    )

    steps = [t.step for t in result.trace]
    assert steps == ["Context", "Lookup", "Lookup", "Match"]
    assert "20.00 EUR" in result.get_trace_text()


def test_response_shape(full_store):
    result = PriceResolver(full_store).resolve_price(
        PricingContext(product_id=PRODUCT_ID, service_point_id=SERVICE_POINT_ID)
    )
    payload = result.to_response()

    assert payload["price"]["entity_type"] == "SERVICE_POINT"
    assert payload["price"]["level"] == "service_point"
    assert payload["resolution"] == {
        "level_applied": "SERVICE_POINT",
        "product_id": PRODUCT_ID,
        "service_point_id": SERVICE_POINT_ID,
        "location_id": None,
    }
