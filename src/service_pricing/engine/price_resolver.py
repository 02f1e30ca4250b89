"""
Price Resolver - Hierarchical price resolution.

Resolution order (first hit wins):
1. Service point override (when a service point is given)
2. Location override (when a location is given)
3. Base product price
4. No price -> level NONE
"""
import logging
from typing import Optional

from .models import (
    LevelApplied,
    PricingContext,
    ResolutionResult,
    level_applied_for,
)
from .interfaces import PriceStore

logger = logging.getLogger(__name__)


class PriceResolver:
    """
    Selects the single applicable price for a product in a context.

    Stateless: every call reads the store again. Store failures are not
    caught here and reach the caller unchanged.
    """

    def __init__(self, store: PriceStore):
        self.store = store

    def resolve_price(self, context: PricingContext) -> ResolutionResult:
        """
        Resolve the price for a context with a trace of consulted levels.

        Args:
            context: PricingContext with the product and optional scope ids

        Returns:
            ResolutionResult with the matched record, or price=None and
            level NONE when no level has a price
        """
        result = ResolutionResult(
            price=None,
            level_applied=LevelApplied.NONE,
            product_id=context.product_id,
            service_point_id=context.service_point_id,
            location_id=context.location_id,
        )
        result.add_trace("Context", f"Resolving price for product {context.product_id}")

        for entity_type, entity_id in context.candidates():
            record = self.store.find_price(
                entity_type, entity_id, context.product_id, on_date=context.on_date
            )
            if record is None:
                result.add_trace("Lookup", f"No {entity_type.value} price", entity_id)
                continue

            result.price = record
            result.level_applied = level_applied_for(record.level)
            result.add_trace(
                "Match",
                f"{entity_type.value} price found",
                f"{record.amount:.2f} {record.currency}",
            )
            if result.level_applied is LevelApplied.NONE:
                logger.warning(
                    "Price %s has unrecognized level tag %r", record.id, record.level
                )
            logger.debug(
                "Resolved product %s at level %s",
                context.product_id, result.level_applied.value,
            )
            return result

        result.add_trace("Fallback", "No price configured at any level", LevelApplied.NONE.value)
        logger.debug("No price for product %s", context.product_id)
        return result

    def applicable_amount(self, context: PricingContext) -> Optional[float]:
        """Get only the amount of the resolved price, or None."""
        result = self.resolve_price(context)
        return result.price.amount if result.price else None
