"""
Prices API - FastAPI router for price resolution and administration.
"""
import logging
from dataclasses import asdict
from datetime import date
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict

from ..engine import PriceResolver
from ..engine.models import EntityType, PriceFilters, PriceRecord, PricingContext
from ..errors import BusinessRuleError, NotFoundError, PricingError
from ..services.price_service import PriceDraft, PriceService
from .state import get_price_service, get_resolver
from .validation import optional_id, validate_uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/prices", tags=["prices"])


# Pydantic models for API
class ResolveRequest(BaseModel):
    """Request model for price resolution."""
    product_id: Optional[Any] = None
    service_point_id: Optional[Any] = None
    location_id: Optional[Any] = None
    on_date: Optional[date] = None


class PriceCreate(BaseModel):
    """Request model for creating a price."""
    entity_type: EntityType
    entity_id: str
    product_id: str
    amount: float
    currency: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None


class PriceUpdate(BaseModel):
    """Request model for updating a price. Extra fields reach the service, which rejects them."""
    model_config = ConfigDict(extra="allow")

    amount: Optional[float] = None
    currency: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None


class PriceResponse(BaseModel):
    """Response model for a price."""
    id: str
    entity_type: str
    entity_id: str
    product_id: str
    amount: float
    currency: str
    level: Optional[str]
    start_date: Optional[str]
    end_date: Optional[str]
    notes: Optional[str]
    created_at: Optional[str]
    updated_at: Optional[str]


class ValidationResponse(BaseModel):
    """Response model for validation."""
    valid: bool
    errors: list[str]
    warnings: list[str]


# Helpers

def _iso(value):
    return value.isoformat() if isinstance(value, date) else value


def _price_response(record: PriceRecord) -> PriceResponse:
    return PriceResponse(**record.to_dict())


def _http_error(e: PricingError) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, BusinessRuleError):
        return HTTPException(status_code=400, detail=str(e))
    logger.error("Price store failure: %s", e)
    return HTTPException(status_code=500, detail=str(e))


def _check_uuid(value, name: str):
    error = validate_uuid(value, name)
    if error:
        raise HTTPException(status_code=400, detail=error)


def _build_context(
    product_id: Optional[str],
    service_point_id: Optional[str],
    location_id: Optional[str],
    on_date: Optional[date] = None,
) -> PricingContext:
    """Validate raw identifiers and build a resolution context."""
    _check_uuid(product_id, "product id")

    service_point_id = optional_id(service_point_id)
    if service_point_id is not None:
        _check_uuid(service_point_id, "service point id")

    location_id = optional_id(location_id)
    if location_id is not None:
        _check_uuid(location_id, "location id")

    return PricingContext(
        product_id=product_id,
        service_point_id=service_point_id,
        location_id=location_id,
        on_date=_iso(on_date),
    )


def _draft(data: PriceCreate) -> PriceDraft:
    values = data.model_dump()
    values['start_date'] = _iso(values['start_date'])
    values['end_date'] = _iso(values['end_date'])
    return PriceDraft(**values)


# Resolution endpoints

@router.post("/resolve")
async def resolve_price(
    req: Optional[ResolveRequest] = None,
    resolver: PriceResolver = Depends(get_resolver),
):
    """
    Resolve the applicable price for a product.

    Most specific level wins: service point, then location, then base.
    A missing price is a normal result with level NONE.
    """
    req = req or ResolveRequest()
    context = _build_context(req.product_id, req.service_point_id, req.location_id, req.on_date)

    try:
        result = resolver.resolve_price(context)
    except Exception:
        logger.exception("Price resolution failed for product %s", context.product_id)
        raise HTTPException(status_code=500, detail="Internal server error")

    return result.to_response()


@router.api_route("/resolve", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def resolve_method_not_allowed():
    raise HTTPException(status_code=405, detail="Method not allowed", headers={"Allow": "POST"})


@router.get("/applicable")
async def get_applicable_price(
    product_id: Optional[str] = None,
    service_point_id: Optional[str] = None,
    location_id: Optional[str] = None,
    on_date: Optional[date] = None,
    resolver: PriceResolver = Depends(get_resolver),
):
    """Get only the amount that applies in a context."""
    context = _build_context(product_id, service_point_id, location_id, on_date)

    try:
        result = resolver.resolve_price(context)
    except Exception:
        logger.exception("Applicable price lookup failed for product %s", context.product_id)
        raise HTTPException(status_code=500, detail="Internal server error")

    return {
        "product_id": context.product_id,
        "amount": result.price.amount if result.price else None,
        "currency": result.price.currency if result.price else None,
        "level_applied": result.level_applied.value,
    }


# Administration endpoints

@router.get("")
async def list_prices(
    entity_type: Optional[EntityType] = None,
    entity_id: Optional[str] = None,
    product_id: Optional[str] = None,
    active: Optional[bool] = None,
    on_date: Optional[date] = None,
    page: int = 1,
    limit: Optional[int] = None,
    order_by: Literal["amount", "start_date", "created_at"] = "created_at",
    order_direction: Literal["asc", "desc"] = "desc",
    service: PriceService = Depends(get_price_service),
):
    """List prices with filters and pagination."""
    filters = PriceFilters(
        entity_type=entity_type,
        entity_id=entity_id,
        product_id=product_id,
        active=active,
        on_date=_iso(on_date),
        page=page,
        limit=limit,
        order_by=order_by,
        order_direction=order_direction,
    )
    try:
        result = service.list_prices(filters)
    except PricingError as e:
        raise _http_error(e)

    return {
        "data": [_price_response(r) for r in result.data],
        "pagination": {
            "page": result.page,
            "limit": result.limit,
            "total": result.total,
            "total_pages": result.total_pages,
        },
    }


@router.get("/active")
async def list_active_prices(
    entity_type: Optional[EntityType] = None,
    product_id: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    service: PriceService = Depends(get_price_service),
):
    """List prices whose validity window contains today."""
    try:
        result = service.active_prices(PriceFilters(
            entity_type=entity_type, product_id=product_id, page=page, limit=limit,
        ))
    except PricingError as e:
        raise _http_error(e)

    return {
        "data": [_price_response(r) for r in result.data],
        "pagination": {
            "page": result.page,
            "limit": result.limit,
            "total": result.total,
            "total_pages": result.total_pages,
        },
    }


@router.get("/stats")
async def get_stats(service: PriceService = Depends(get_price_service)):
    """Get price statistics."""
    try:
        return asdict(service.stats())
    except PricingError as e:
        raise _http_error(e)


@router.get("/level/{entity_type}", response_model=list[PriceResponse])
async def get_prices_by_level(
    entity_type: EntityType,
    active: Optional[bool] = None,
    service: PriceService = Depends(get_price_service),
):
    """Get all prices of one hierarchy level."""
    try:
        return [_price_response(r) for r in service.by_level(entity_type, active=active)]
    except PricingError as e:
        raise _http_error(e)


@router.get("/entity/{entity_type}/{entity_id}", response_model=list[PriceResponse])
async def get_prices_by_entity(
    entity_type: EntityType,
    entity_id: str,
    active: Optional[bool] = None,
    service: PriceService = Depends(get_price_service),
):
    """Get the prices scoped to one entity."""
    _check_uuid(entity_id, "entity id")
    try:
        return [_price_response(r) for r in service.by_entity(entity_type, entity_id, active=active)]
    except PricingError as e:
        raise _http_error(e)


@router.get("/history/{entity_type}/{entity_id}", response_model=list[PriceResponse])
async def get_history(
    entity_type: EntityType,
    entity_id: str,
    product_id: Optional[str] = None,
    service: PriceService = Depends(get_price_service),
):
    """Get the price history of an entity, newest first."""
    _check_uuid(entity_id, "entity id")
    try:
        return [_price_response(r) for r in service.history(entity_type, entity_id, product_id)]
    except PricingError as e:
        raise _http_error(e)


@router.post("/validate", response_model=ValidationResponse)
async def validate_price(data: PriceCreate, service: PriceService = Depends(get_price_service)):
    """Validate a price without saving."""
    try:
        result = service.validate(_draft(data))
    except PricingError as e:
        raise _http_error(e)
    return ValidationResponse(valid=result.valid, errors=result.errors, warnings=result.warnings)


@router.get("/{price_id}", response_model=PriceResponse)
async def get_price(price_id: str, service: PriceService = Depends(get_price_service)):
    """Get a single price by ID."""
    _check_uuid(price_id, "price id")
    try:
        return _price_response(service.get(price_id))
    except PricingError as e:
        raise _http_error(e)


@router.post("", response_model=PriceResponse, status_code=201)
async def create_price(data: PriceCreate, service: PriceService = Depends(get_price_service)):
    """Create a new price."""
    _check_uuid(data.product_id, "product id")
    _check_uuid(data.entity_id, "entity id")
    try:
        return _price_response(service.create(_draft(data)))
    except PricingError as e:
        raise _http_error(e)


@router.put("/{price_id}", response_model=PriceResponse)
async def update_price(price_id: str, updates: PriceUpdate, service: PriceService = Depends(get_price_service)):
    """Update an existing price."""
    _check_uuid(price_id, "price id")
    # Only fields present in the body are applied, including explicit nulls
    changes = {key: _iso(value) for key, value in updates.model_dump(exclude_unset=True).items()}
    try:
        return _price_response(service.update(price_id, changes))
    except PricingError as e:
        raise _http_error(e)


@router.delete("/{price_id}")
async def delete_price(price_id: str, hard: bool = False, service: PriceService = Depends(get_price_service)):
    """Close a price's validity window, or remove it with ?hard=true."""
    _check_uuid(price_id, "price id")
    try:
        if hard:
            service.hard_delete(price_id)
            return {"success": True, "message": f"Price '{price_id}' deleted"}
        record = service.soft_delete(price_id)
        return {"success": True, "message": f"Price '{price_id}' closed", "price": _price_response(record)}
    except PricingError as e:
        raise _http_error(e)
