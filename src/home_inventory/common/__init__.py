"""Common utilities shared by the inventory storage and backup packages."""

from .config import ConfigLoader
from .logging import setup_logging, LogContext
from .logging_config import LoggingConfig
from .errors import (
    InventoryError, ConfigurationError, StorageError,
    ArchiveError, CorruptedArchiveError
)
from .path_utils import normalize_path

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'setup_logging',
    'LogContext',
    'InventoryError',
    'ConfigurationError',
    'StorageError',
    'ArchiveError',
    'CorruptedArchiveError',
    'normalize_path',
]
