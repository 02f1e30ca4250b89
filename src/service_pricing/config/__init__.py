"""Settings subpackage."""
