"""Price administration services."""
