from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


class FetchError(RuntimeError):
    """Raised when a thread list or dat file cannot be retrieved."""


class SchemaError(RuntimeError):
    """Raised when a fetched document does not match the expected shape."""
