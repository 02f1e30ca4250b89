"""
Identifier checks for the HTTP boundary.

The resolver trusts its input; everything here runs before it is called.
"""
import uuid
from typing import Any, Optional


def is_canonical_uuid(value: str) -> bool:
    """Accept only the hyphenated 36-character form, in either case."""
    try:
        return str(uuid.UUID(value)) == value.lower()
    except ValueError:
        return False


def validate_uuid(value: Any, name: str = "id") -> Optional[str]:
    """
    Validate a required identifier.

    Returns an error message, or None when the value is a valid UUID.
    """
    if value is None or value == "":
        return f"{name} is required"
    if not isinstance(value, str):
        return f"{name} must be a string"
    if not is_canonical_uuid(value):
        return f"{name} must be a valid UUID"
    return None


def optional_id(value: Any) -> Any:
    """Blank optional identifiers count as absent. Anything else is kept for validation."""
    if isinstance(value, str) and not value.strip():
        return None
    return value
