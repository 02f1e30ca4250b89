"""
Price Service - business rules for price administration.

Enforces the hierarchy rules on create, keeps structural fields immutable on
update, and prefers soft deletes (closing the validity window) so price
history stays traceable.
"""
import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from ..engine.models import (
    EntityType,
    HIERARCHY,
    PriceFilters,
    PriceRecord,
    PriceStats,
    ValidationResult,
    level_tag_for,
    today_iso,
)
from ..errors import BusinessRuleError, DatabaseError, NotFoundError, PriceStoreError
from ..store.base import PriceRepository

logger = logging.getLogger(__name__)


CURRENCY_RE = re.compile(r'^[A-Z]{3}$')

UPDATABLE_FIELDS = ('amount', 'currency', 'start_date', 'end_date', 'notes')
STRUCTURAL_FIELDS = ('entity_type', 'entity_id', 'product_id', 'level')

CONTEXT_LABELS = {
    EntityType.SERVICE_POINT: "service point",
    EntityType.LOCATION: "location",
    EntityType.PRODUCT: "base",
}


@dataclass
class PriceDraft:
    """Data for a new price."""
    entity_type: EntityType
    entity_id: str
    product_id: str
    amount: float
    currency: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[str] = None


@dataclass
class PricePage:
    """One page of a price listing."""
    data: list[PriceRecord]
    total: int
    page: int
    limit: int
    total_pages: int = field(init=False)

    def __post_init__(self):
        self.total_pages = -(-self.total // self.limit) if self.limit else 1


class PriceService:
    """Service for managing hierarchical prices."""

    def __init__(self, repository: PriceRepository, default_currency: str = "EUR", page_limit: int = 20):
        self.repository = repository
        self.default_currency = default_currency
        self.page_limit = page_limit

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def validate(self, draft: PriceDraft) -> ValidationResult:
        """Validate a new price without saving it."""
        result = ValidationResult(valid=True)

        try:
            entity_type = EntityType(draft.entity_type)
        except ValueError:
            result.errors.append(f"Invalid entity type: {draft.entity_type}")
            result.valid = False
            return result

        if not draft.product_id:
            result.errors.append("Product id is required")
            result.valid = False

        if not draft.entity_id:
            result.errors.append("Entity id is required")
            result.valid = False
        elif entity_type is EntityType.PRODUCT and draft.entity_id != draft.product_id:
            result.errors.append("A base price must be scoped to its own product")
            result.valid = False
        elif entity_type is not EntityType.PRODUCT and draft.entity_id == draft.product_id:
            result.errors.append(
                f"A {CONTEXT_LABELS[entity_type]} price must be scoped to a {CONTEXT_LABELS[entity_type]}"
            )
            result.valid = False

        result.errors.extend(self._check_amount(draft.amount))
        result.errors.extend(self._check_currency(draft.currency or self.default_currency))
        result.errors.extend(self._check_dates(draft.start_date or today_iso(), draft.end_date))
        if result.errors:
            result.valid = False

        if draft.end_date and draft.end_date < today_iso():
            result.warnings.append("Price has expired (end date is in the past)")

        if result.valid and self._exists_active(entity_type, draft.entity_id, draft.product_id):
            result.errors.append(
                f"An active price already exists at {CONTEXT_LABELS[entity_type]} level for this product. "
                "Close the previous price before creating a new one."
            )
            result.valid = False

        return result

    def _check_amount(self, amount: Any) -> list[str]:
        try:
            value = float(amount)
        except (TypeError, ValueError):
            return ["Amount must be a number"]
        if value <= 0:
            return ["Amount must be greater than zero"]
        return []

    def _check_currency(self, currency: str) -> list[str]:
        if not CURRENCY_RE.match(currency or ''):
            return [f"Currency must be a 3-letter code, got '{currency}'"]
        return []

    def _check_dates(self, start_date: Optional[str], end_date: Optional[str]) -> list[str]:
        if start_date and end_date and end_date < start_date:
            return ["End date must not be before start date"]
        return []

    def _exists_active(self, entity_type: EntityType, entity_id: str, product_id: str,
                       exclude_id: Optional[str] = None) -> bool:
        try:
            return self.repository.exists_active(entity_type, entity_id, product_id, exclude_id=exclude_id)
        except PriceStoreError as e:
            raise DatabaseError("Error checking active prices", {"original_error": str(e)}) from e

    # =========================================================================
    # WRITES
    # =========================================================================

    def create(self, draft: PriceDraft) -> PriceRecord:
        """Create a new price after validating hierarchy and duplicates."""
        validation = self.validate(draft)
        if not validation.valid:
            raise BusinessRuleError("; ".join(validation.errors))

        entity_type = EntityType(draft.entity_type)
        record = PriceRecord(
            id=draft.id or str(uuid.uuid4()),
            entity_type=entity_type,
            entity_id=draft.entity_id,
            product_id=draft.product_id,
            amount=float(draft.amount),
            currency=draft.currency or self.default_currency,
            level=level_tag_for(entity_type),
            start_date=draft.start_date or today_iso(),
            end_date=draft.end_date,
            notes=draft.notes,
        )

        try:
            created = self.repository.add(record)
        except PriceStoreError as e:
            raise DatabaseError("Error creating price", {"original_error": str(e)}) from e

        logger.info(
            "Created %s price %s for product %s: %.2f %s",
            created.level, created.id, created.product_id, created.amount, created.currency,
        )
        return created

    def create_base_price(self, product_id: str, amount: float, notes: Optional[str] = None) -> PriceRecord:
        return self.create(PriceDraft(
            entity_type=EntityType.PRODUCT, entity_id=product_id, product_id=product_id,
            amount=amount, notes=notes,
        ))

    def create_location_price(self, product_id: str, location_id: str, amount: float,
                              notes: Optional[str] = None) -> PriceRecord:
        return self.create(PriceDraft(
            entity_type=EntityType.LOCATION, entity_id=location_id, product_id=product_id,
            amount=amount, notes=notes,
        ))

    def create_service_point_price(self, product_id: str, service_point_id: str, amount: float,
                                   notes: Optional[str] = None) -> PriceRecord:
        return self.create(PriceDraft(
            entity_type=EntityType.SERVICE_POINT, entity_id=service_point_id, product_id=product_id,
            amount=amount, notes=notes,
        ))

    def update(self, price_id: str, changes: dict[str, Any]) -> PriceRecord:
        """
        Update amount, currency, dates or notes of a price.

        Structural fields cannot change; create a new price instead.
        """
        existing = self.get(price_id)

        for key in STRUCTURAL_FIELDS:
            if key in changes:
                raise BusinessRuleError(f"Cannot change the {key.replace('_', ' ')} of an existing price")
        unknown = [key for key in changes if key not in UPDATABLE_FIELDS]
        if unknown:
            raise BusinessRuleError(f"Unknown price fields: {', '.join(unknown)}")

        errors = []
        if 'amount' in changes:
            errors.extend(self._check_amount(changes['amount']))
        if 'currency' in changes:
            errors.extend(self._check_currency(changes['currency']))
        errors.extend(self._check_dates(
            changes.get('start_date', existing.start_date),
            changes.get('end_date', existing.end_date),
        ))
        if errors:
            raise BusinessRuleError("; ".join(errors))

        try:
            updated = self.repository.update(price_id, changes)
        except PriceStoreError as e:
            raise DatabaseError("Error updating price", {"original_error": str(e)}) from e
        if updated is None:
            raise NotFoundError("Price", price_id)

        logger.info("Updated price %s: %s", price_id, ", ".join(sorted(changes)))
        return updated

    def soft_delete(self, price_id: str) -> PriceRecord:
        """
        Close the validity window of a price as of today.

        Prices that already ended are returned unchanged. Prices that have
        not started yet cannot be closed; hard delete them instead.
        """
        existing = self.get(price_id)
        today = today_iso()

        if existing.end_date and existing.end_date < today:
            logger.info("Price %s already ended on %s", price_id, existing.end_date)
            return existing
        if existing.start_date and existing.start_date > today:
            raise BusinessRuleError(
                f"Price '{price_id}' starts on {existing.start_date} and cannot be closed before it starts; "
                "hard delete it instead"
            )
        return self.update(price_id, {'end_date': today})

    def hard_delete(self, price_id: str) -> None:
        """Physically remove a price. Only for data-entry mistakes."""
        try:
            deleted = self.repository.delete(price_id)
        except PriceStoreError as e:
            raise DatabaseError("Error deleting price", {"original_error": str(e)}) from e
        if not deleted:
            raise NotFoundError("Price", price_id)
        logger.info("Deleted price %s", price_id)

    # =========================================================================
    # READS
    # =========================================================================

    def get(self, price_id: str) -> PriceRecord:
        try:
            record = self.repository.get(price_id)
        except PriceStoreError as e:
            raise DatabaseError("Error fetching price", {"original_error": str(e)}) from e
        if record is None:
            raise NotFoundError("Price", price_id)
        return record

    def list_prices(self, filters: Optional[PriceFilters] = None) -> PricePage:
        """List prices with filters and pagination."""
        filters = filters or PriceFilters()
        filters.page = max(filters.page or 1, 1)
        filters.limit = min(max(filters.limit or self.page_limit, 1), 100)

        try:
            records, total = self.repository.list_prices(filters)
        except PriceStoreError as e:
            raise DatabaseError("Error listing prices", {"original_error": str(e)}) from e
        return PricePage(data=records, total=total, page=filters.page, limit=filters.limit)

    def active_prices(self, filters: Optional[PriceFilters] = None) -> PricePage:
        filters = filters or PriceFilters()
        filters.active = True
        return self.list_prices(filters)

    def _all_matching(self, filters: PriceFilters) -> list[PriceRecord]:
        try:
            records, _ = self.repository.list_prices(filters)
        except PriceStoreError as e:
            raise DatabaseError("Error listing prices", {"original_error": str(e)}) from e
        return records

    def by_level(self, entity_type: EntityType, active: Optional[bool] = None) -> list[PriceRecord]:
        return self._all_matching(PriceFilters(entity_type=entity_type, active=active))

    def by_entity(self, entity_type: EntityType, entity_id: str,
                  active: Optional[bool] = None) -> list[PriceRecord]:
        """Prices scoped to one entity, most specific level first."""
        records = self._all_matching(PriceFilters(entity_type=entity_type, entity_id=entity_id, active=active))
        records.sort(key=lambda r: HIERARCHY.index(r.entity_type))
        return records

    def history(self, entity_type: EntityType, entity_id: str,
                product_id: Optional[str] = None) -> list[PriceRecord]:
        """All prices ever set for an entity, newest start date first."""
        return self._all_matching(PriceFilters(
            entity_type=entity_type, entity_id=entity_id, product_id=product_id,
            order_by='start_date', order_direction='desc',
        ))

    def stats(self) -> PriceStats:
        """Aggregate counts and amount range over the price table."""
        try:
            records = self.repository.all_prices()
        except PriceStoreError as e:
            raise DatabaseError("Error computing price stats", {"original_error": str(e)}) from e

        today = today_iso()
        active = [r for r in records if r.is_active(today)]
        amounts = [r.amount for r in active]

        stats = PriceStats(
            total=len(records),
            active=len(active),
            expired=sum(1 for r in records if r.end_date and r.end_date < today),
            service_point=sum(1 for r in records if r.entity_type is EntityType.SERVICE_POINT),
            location=sum(1 for r in records if r.entity_type is EntityType.LOCATION),
            base=sum(1 for r in records if r.entity_type is EntityType.PRODUCT),
        )
        if amounts:
            stats.amount_min = min(amounts)
            stats.amount_max = max(amounts)
            stats.amount_avg = round(sum(amounts) / len(amounts), 2)
        return stats
