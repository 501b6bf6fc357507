"""Data Access Layer for items table."""

import json
import logging
from typing import Iterable, List, Optional

from ..database import DatabaseConnection
from ...models import Item

logger = logging.getLogger(__name__)

_COLUMNS = "id, name, description, quantity, location_id, image_refs, sort_order"


class ItemDAL:
    """
    Data access layer for items table.
    
    Image references are stored as a JSON array so their order survives.
    """
    
    def __init__(self, db: DatabaseConnection):
        self.db = db
    
    @staticmethod
    def _from_row(row) -> Item:
        return Item(
            id=row['id'],
            name=row['name'],
            description=row['description'],
            quantity=row['quantity'],
            location_id=row['location_id'],
            image_refs=json.loads(row['image_refs'] or '[]'),
            sort_order=row['sort_order'],
        )
    
    def _query(self, sql: str, parameters=None) -> List[Item]:
        with self.db.lock:
            cursor = self.db.execute(sql, parameters)
            rows = cursor.fetchall()
            cursor.close()
        return [self._from_row(row) for row in rows]
    
    def get_all_items(self) -> List[Item]:
        """Return every item ordered by sort order, then name."""
        return self._query(f"SELECT {_COLUMNS} FROM items ORDER BY sort_order ASC, name ASC, id ASC")
    
    def get_item(self, item_id: int) -> Optional[Item]:
        items = self._query(f"SELECT {_COLUMNS} FROM items WHERE id = ?", (item_id,))
        return items[0] if items else None
    
    def get_items_by_location(self, location_id: int) -> List[Item]:
        return self._query(
            f"SELECT {_COLUMNS} FROM items WHERE location_id = ? ORDER BY sort_order ASC, name ASC, id ASC",
            (location_id,)
        )
    
    def search_items(self, text: str) -> List[Item]:
        """Case-insensitive substring search over name and description."""
        pattern = f"%{text}%"
        return self._query(
            f"SELECT {_COLUMNS} FROM items WHERE name LIKE ? OR description LIKE ? "
            "ORDER BY sort_order ASC, name ASC, id ASC",
            (pattern, pattern)
        )
    
    def insert_item(self, item: Item) -> bool:
        """
        Insert an item, ignoring it if the id is already taken.
        
        Raises:
            sqlite3.IntegrityError: If ``location_id`` does not reference a location
            
        Returns:
            True if a row was inserted, False if an existing row was kept
        """
        with self.db.lock:
            cursor = self.db.execute(
                f"INSERT OR IGNORE INTO items ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    item.id or None,
                    item.name,
                    item.description,
                    item.quantity,
                    item.location_id,
                    json.dumps(item.image_refs),
                    item.sort_order,
                )
            )
            inserted = cursor.rowcount == 1
            cursor.close()
            self.db.commit()
        
        if not inserted:
            logger.debug(f"Item {item.id} already exists, kept existing row")
        return inserted
    
    def update_item(self, item: Item) -> None:
        self.update_items([item])
    
    def update_items(self, items: Iterable[Item]) -> None:
        """Update several items in one transaction (used for drag-to-reorder)."""
        with self.db.transaction() as cursor:
            for item in items:
                cursor.execute(
                    "UPDATE items SET name = ?, description = ?, quantity = ?, location_id = ?, "
                    "image_refs = ?, sort_order = ? WHERE id = ?",
                    (
                        item.name,
                        item.description,
                        item.quantity,
                        item.location_id,
                        json.dumps(item.image_refs),
                        item.sort_order,
                        item.id,
                    )
                )
    
    def delete_item(self, item: Item) -> None:
        with self.db.lock:
            cursor = self.db.execute("DELETE FROM items WHERE id = ?", (item.id,))
            cursor.close()
            self.db.commit()
