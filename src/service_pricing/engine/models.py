"""
Data models for hierarchical price resolution.

Uses dataclasses for records and contexts, and closed enums for the
hierarchy levels so that an unknown level can never leak out of the engine.
"""
from dataclasses import dataclass, field, asdict
from datetime import date
from enum import Enum
from typing import Optional


class EntityType(str, Enum):
    """Scope a price override belongs to."""
    SERVICE_POINT = "SERVICE_POINT"
    LOCATION = "LOCATION"
    PRODUCT = "PRODUCT"


class LevelApplied(str, Enum):
    """Hierarchy tier that produced a resolved price."""
    SERVICE_POINT = "SERVICE_POINT"
    LOCATION = "LOCATION"
    BASE = "BASE"
    NONE = "NONE"


# Raw level tags as stored next to each price record
LEVEL_TAGS = {
    EntityType.SERVICE_POINT: "service_point",
    EntityType.LOCATION: "location",
    EntityType.PRODUCT: "base",
}

# Most specific first
HIERARCHY = (EntityType.SERVICE_POINT, EntityType.LOCATION, EntityType.PRODUCT)


def today_iso() -> str:
    return date.today().isoformat()


def level_tag_for(entity_type: EntityType) -> str:
    """Get the raw level tag stored for an entity type."""
    return LEVEL_TAGS[EntityType(entity_type)]


def level_applied_for(tag: Optional[str]) -> LevelApplied:
    """
    Map a raw level tag from the store to the external level enum.

    Unrecognized tags (including None) map to NONE.
    """
    if tag == "service_point":
        return LevelApplied.SERVICE_POINT
    elif tag == "location":
        return LevelApplied.LOCATION
    elif tag == "base":
        return LevelApplied.BASE
    return LevelApplied.NONE


@dataclass
class TraceStep:
    """A single step in the price resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class PricingContext:
    """Identifiers used to decide which price applies."""
    product_id: str
    service_point_id: Optional[str] = None
    location_id: Optional[str] = None
    on_date: Optional[str] = None  # ISO date, None = today

    def candidates(self) -> list[tuple[EntityType, str]]:
        """Lookups to try, most specific first. Absent ids are skipped."""
        scoped = {
            EntityType.SERVICE_POINT: self.service_point_id,
            EntityType.LOCATION: self.location_id,
            EntityType.PRODUCT: self.product_id,
        }
        return [(level, scoped[level]) for level in HIERARCHY if scoped[level] is not None]


@dataclass
class PriceRecord:
    """A price override at one level of the hierarchy."""
    id: str
    entity_type: EntityType
    entity_id: str
    product_id: str
    amount: float
    currency: str = "EUR"
    level: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self):
        self.entity_type = EntityType(self.entity_type)
        if self.level is None:
            self.level = level_tag_for(self.entity_type)

    def is_active(self, on_date: str) -> bool:
        """Check whether the validity window contains the given ISO date."""
        if self.start_date and self.start_date > on_date:
            return False
        if self.end_date and self.end_date < on_date:
            return False
        return True

    def to_dict(self) -> dict:
        data = asdict(self)
        data['entity_type'] = self.entity_type.value
        return data


@dataclass
class ResolutionResult:
    """Outcome of resolving a price for a context."""
    price: Optional[PriceRecord]
    level_applied: LevelApplied
    product_id: str
    service_point_id: Optional[str] = None
    location_id: Optional[str] = None
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the resolution trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    def to_response(self) -> dict:
        """Serialize to the resolver endpoint payload."""
        return {
            "price": self.price.to_dict() if self.price else None,
            "resolution": {
                "level_applied": self.level_applied.value,
                "product_id": self.product_id,
                "service_point_id": self.service_point_id,
                "location_id": self.location_id,
            },
            "trace": [asdict(t) for t in self.trace],
        }


@dataclass
class PriceFilters:
    """Filters for listing prices. All fields are optional."""
    entity_type: Optional[EntityType] = None
    entity_id: Optional[str] = None
    product_id: Optional[str] = None
    active: Optional[bool] = None
    on_date: Optional[str] = None

    # Pagination
    page: Optional[int] = None
    limit: Optional[int] = None

    # Ordering
    order_by: str = "created_at"  # "amount", "start_date", "created_at"
    order_direction: str = "desc"


@dataclass
class PriceStats:
    """Aggregate figures over the price table."""
    total: int = 0
    active: int = 0
    expired: int = 0
    service_point: int = 0
    location: int = 0
    base: int = 0
    amount_min: float = 0.0
    amount_max: float = 0.0
    amount_avg: float = 0.0


@dataclass
class ValidationResult:
    """Result of price validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
