"""Base error definitions for home_inventory packages."""

from typing import Any, Dict


class InventoryError(Exception):
    """Base exception for all home_inventory errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class ConfigurationError(InventoryError):
    """Configuration is invalid or missing."""
    pass


class StorageError(InventoryError):
    """The persistence layer rejected a read or write."""
    pass


class ArchiveError(InventoryError):
    """Archive processing failed."""
    pass


class CorruptedArchiveError(ArchiveError):
    """Archive is corrupted or not a zip container."""
    pass
