"""Catalog repository consumed by the backup and restore engines."""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Protocol, Tuple, runtime_checkable

from ..common.errors import StorageError
from ..models import Item, Location
from .dal import ItemDAL, LocationDAL
from .database import DatabaseConnection
from .migrations import MigrationRunner

logger = logging.getLogger(__name__)


@runtime_checkable
class InventoryStorage(Protocol):
    """The persistence primitives the backup and restore engines need.

    ``snapshot`` reads every location and item as of one point in time.
    Inserts are insert-or-ignore: a record whose id already exists is left
    untouched and the call returns False.
    """

    def get_all_locations(self) -> List[Location]: ...

    def get_all_items(self) -> List[Item]: ...

    def snapshot(self) -> Tuple[List[Location], List[Item]]: ...

    def insert_location(self, location: Location) -> bool: ...

    def insert_item(self, item: Item) -> bool: ...


class InventoryRepository:
    """SQLite-backed catalog with the CRUD operations of the app.

    Any sqlite error is rolled back and re-raised as ``StorageError``.
    """

    def __init__(self, db: DatabaseConnection):
        self.db = db
        self.locations = LocationDAL(db)
        self.items = ItemDAL(db)

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as e:
            self.db.rollback()
            raise StorageError(f"Storage {action} failed: {e}", action=action) from e

    # Locations

    def get_all_locations(self) -> List[Location]:
        with self._guard("read"):
            return self.locations.get_all_locations()

    def get_location(self, location_id: int) -> Optional[Location]:
        with self._guard("read"):
            return self.locations.get_location(location_id)

    def insert_location(self, location: Location) -> bool:
        with self._guard("write"):
            return self.locations.insert_location(location)

    def update_location(self, location: Location) -> None:
        with self._guard("write"):
            self.locations.update_location(location)

    def delete_location(self, location: Location) -> None:
        with self._guard("write"):
            self.locations.delete_location(location)

    # Items

    def get_all_items(self) -> List[Item]:
        with self._guard("read"):
            return self.items.get_all_items()

    def get_item(self, item_id: int) -> Optional[Item]:
        with self._guard("read"):
            return self.items.get_item(item_id)

    def get_items_by_location(self, location_id: int) -> List[Item]:
        with self._guard("read"):
            return self.items.get_items_by_location(location_id)

    def search_items(self, text: str) -> List[Item]:
        with self._guard("read"):
            return self.items.search_items(text)

    def insert_item(self, item: Item) -> bool:
        with self._guard("write"):
            return self.items.insert_item(item)

    def update_item(self, item: Item) -> None:
        with self._guard("write"):
            self.items.update_item(item)

    def update_items(self, items: Iterable[Item]) -> None:
        with self._guard("write"):
            self.items.update_items(items)

    def delete_item(self, item: Item) -> None:
        with self._guard("write"):
            self.items.delete_item(item)

    # Backup

    def snapshot(self) -> Tuple[List[Location], List[Item]]:
        """Read all locations and items inside a single read transaction.

        The connection lock is held throughout, so writers sharing this
        connection wait until both reads are done.
        """
        with self._guard("read"), self.db.transaction():
            return self.locations.get_all_locations(), self.items.get_all_items()

    def close(self) -> None:
        self.db.close()


def open_repository(db_path: Path | str) -> InventoryRepository:
    """Open the catalog at ``db_path``, creating or migrating the schema first.

    Raises:
        StorageError: If the database cannot be opened or migrated
    """
    db = DatabaseConnection(db_path)
    try:
        db.connect()
        MigrationRunner(db).apply_migrations()
    except sqlite3.Error as e:
        db.close()
        raise StorageError(f"Cannot open catalog {db_path}: {e}", path=str(db_path)) from e
    return InventoryRepository(db)
