"""Data Access Layer (DAL) for database operations."""

from .locations import LocationDAL
from .items import ItemDAL

__all__ = [
    'LocationDAL',
    'ItemDAL',
]
