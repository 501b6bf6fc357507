"""Database connection manager for SQLite with WAL mode and proper configuration."""

import sqlite3
import logging
import threading
from pathlib import Path
from typing import Optional
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """
    Manages the SQLite connection behind the catalog.
    
    Features:
    - WAL mode so snapshot reads do not block the writer
    - Foreign keys enforced (items must reference an existing location)
    - Transaction context manager
    - Single connection per instance, guarded by a lock so the background
      backup/restore worker and the caller can share it
    """
    
    def __init__(self, db_path: Path):
        """
        Initialize database connection manager.
        
        Args:
            db_path: Path to SQLite database file, or ``":memory:"``
        """
        self.db_path = db_path
        self._connection: Optional[sqlite3.Connection] = None
        self.lock = threading.RLock()
        
    def connect(self) -> sqlite3.Connection:
        """
        Establish database connection with proper configuration.
        
        Returns:
            SQLite connection object
            
        Raises:
            sqlite3.Error: If connection fails
        """
        if self._connection is not None:
            return self._connection
        
        if str(self.db_path) != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        
        logger.info(f"Connecting to database: {self.db_path}")
        self._connection = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False,  # Shared with the background worker, see self.lock
            timeout=5.0
        )
        
        self._connection.row_factory = sqlite3.Row
        
        self._apply_pragmas()
        
        logger.info("Database connection established")
        return self._connection
    
    def _apply_pragmas(self):
        """Apply SQLite PRAGMAs."""
        cursor = self._connection.cursor()
        
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA temp_store=MEMORY")
        
        # Items reference locations; deleting a location cascades
        cursor.execute("PRAGMA foreign_keys=ON")
        logger.debug("Applied PRAGMAs (journal_mode=WAL, foreign_keys=ON)")
        
        cursor.close()
    
    @contextmanager
    def transaction(self):
        """
        Context manager for explicit transactions.
        
        Usage:
            with db.transaction() as cursor:
                cursor.execute(...)
                cursor.execute(...)
            # Commits on success, rolls back on exception
        """
        with self.lock:
            if self._connection is None:
                self.connect()
                
            cursor = self._connection.cursor()
            try:
                cursor.execute("BEGIN")
                yield cursor
                self._connection.commit()
            except Exception:
                self._connection.rollback()
                raise
            finally:
                cursor.close()
    
    def execute(self, sql: str, parameters=None):
        """
        Execute a single SQL statement.
        
        Args:
            sql: SQL statement
            parameters: Optional parameters for parameterized query
            
        Returns:
            Cursor object
        """
        with self.lock:
            if self._connection is None:
                self.connect()
                
            cursor = self._connection.cursor()
            if parameters:
                cursor.execute(sql, parameters)
            else:
                cursor.execute(sql)
            return cursor
    
    def commit(self):
        """Commit current transaction."""
        with self.lock:
            if self._connection is not None:
                self._connection.commit()
    
    def rollback(self):
        """Rollback current transaction."""
        with self.lock:
            if self._connection is not None:
                self._connection.rollback()
    
    def close(self):
        """Close database connection."""
        with self.lock:
            if self._connection is None:
                return
            try:
                cursor = self._connection.cursor()
                cursor.execute("PRAGMA wal_checkpoint(TRUNCATE)")
                cursor.close()
                logger.debug("WAL checkpoint completed")
            except sqlite3.Error as e:
                logger.warning(f"Failed to checkpoint WAL: {e}")
            
            self._connection.close()
            self._connection = None
            logger.info("Database connection closed")
    
    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False
