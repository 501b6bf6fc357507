"""SQLite storage for the inventory catalog."""

from .database import DatabaseConnection
from .migrations import MigrationRunner
from .repository import InventoryRepository, InventoryStorage, open_repository

__all__ = [
    'DatabaseConnection',
    'MigrationRunner',
    'InventoryRepository',
    'InventoryStorage',
    'open_repository',
]
