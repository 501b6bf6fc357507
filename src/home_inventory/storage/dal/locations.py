"""Data Access Layer for locations table."""

import logging
from typing import List, Optional

from ..database import DatabaseConnection
from ...models import Location

logger = logging.getLogger(__name__)


class LocationDAL:
    """Data access layer for locations table."""
    
    def __init__(self, db: DatabaseConnection):
        self.db = db
    
    @staticmethod
    def _from_row(row) -> Location:
        return Location(id=row['id'], name=row['name'])
    
    def get_all_locations(self) -> List[Location]:
        """Return every location ordered by name."""
        with self.db.lock:
            cursor = self.db.execute("SELECT id, name FROM locations ORDER BY name ASC, id ASC")
            rows = cursor.fetchall()
            cursor.close()
        return [self._from_row(row) for row in rows]
    
    def get_location(self, location_id: int) -> Optional[Location]:
        with self.db.lock:
            cursor = self.db.execute("SELECT id, name FROM locations WHERE id = ?", (location_id,))
            row = cursor.fetchone()
            cursor.close()
        return self._from_row(row) if row else None
    
    def insert_location(self, location: Location) -> bool:
        """
        Insert a location, ignoring it if the id is already taken.
        
        A location with ``id == 0`` gets a fresh id from the database.
        
        Returns:
            True if a row was inserted, False if an existing row was kept
        """
        with self.db.lock:
            cursor = self.db.execute(
                "INSERT OR IGNORE INTO locations (id, name) VALUES (?, ?)",
                (location.id or None, location.name)
            )
            inserted = cursor.rowcount == 1
            cursor.close()
            self.db.commit()
        
        if not inserted:
            logger.debug(f"Location {location.id} already exists, kept existing row")
        return inserted
    
    def update_location(self, location: Location) -> None:
        with self.db.lock:
            cursor = self.db.execute(
                "UPDATE locations SET name = ? WHERE id = ?",
                (location.name, location.id)
            )
            cursor.close()
            self.db.commit()
    
    def delete_location(self, location: Location) -> None:
        """Delete a location; its items are removed by the foreign key cascade."""
        with self.db.lock:
            cursor = self.db.execute("DELETE FROM locations WHERE id = ?", (location.id,))
            cursor.close()
            self.db.commit()
        logger.debug(f"Deleted location {location.id}")
