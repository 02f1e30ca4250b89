"""Engine subpackage - price models and hierarchical resolution."""
from .price_resolver import PriceResolver
from .models import PricingContext, PriceRecord, ResolutionResult, EntityType, LevelApplied

__all__ = ['PriceResolver', 'PricingContext', 'PriceRecord', 'ResolutionResult', 'EntityType', 'LevelApplied']
