"""
Error types shared by the store, service and API layers.
"""
from typing import Optional


class PricingError(Exception):
    """Base class for pricing errors."""


class PriceStoreError(PricingError):
    """The price store could not be read or written."""


class NotFoundError(PricingError):
    """A requested resource does not exist."""

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} '{resource_id}' not found")


class BusinessRuleError(PricingError):
    """An operation would break a pricing business rule."""


class DatabaseError(PricingError):
    """A store failure surfaced through the service layer."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.details = details or {}
        super().__init__(message)
