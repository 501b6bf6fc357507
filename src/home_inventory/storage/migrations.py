"""Database migration system for schema versioning."""

import logging
from pathlib import Path
from typing import Optional, List
import sqlite3

from .database import DatabaseConnection

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent / "schema"


class MigrationRunner:
    """
    Manages database schema migrations.
    
    Migration files are named ``NNN_description.sql`` and applied in version
    order, each in its own transaction. Running twice is a no-op.
    """
    
    def __init__(self, db: DatabaseConnection, schema_dir: Path = SCHEMA_DIR):
        """
        Initialize migration runner.
        
        Args:
            db: Database connection
            schema_dir: Directory containing migration SQL files
        """
        self.db = db
        self.schema_dir = schema_dir
        
    def get_current_version(self) -> int:
        """
        Get current schema version from database.
        
        Returns:
            Current version number (0 if schema_version table doesn't exist)
        """
        try:
            cursor = self.db.execute(
                "SELECT MAX(version) as version FROM schema_version"
            )
            row = cursor.fetchone()
            cursor.close()
            
            if row and row['version'] is not None:
                return row['version']
            return 0
        except sqlite3.OperationalError:
            logger.debug("schema_version table not found, assuming version 0")
            return 0
    
    def _get_available_migrations(self) -> List[tuple[int, Path]]:
        """
        Get list of available migration files.
        
        Returns:
            List of (version, path) tuples sorted by version
        """
        migrations = []
        
        if not self.schema_dir.exists():
            logger.warning(f"Schema directory not found: {self.schema_dir}")
            return migrations
        
        for sql_file in self.schema_dir.glob("*.sql"):
            try:
                version = int(sql_file.stem.split('_')[0])
                migrations.append((version, sql_file))
            except (ValueError, IndexError):
                logger.warning(f"Skipping invalid migration file: {sql_file.name}")
                continue
        
        migrations.sort(key=lambda x: x[0])
        return migrations
    
    def apply_migrations(self, target_version: Optional[int] = None):
        """
        Apply pending migrations up to target version.
        
        Args:
            target_version: Version to migrate to (None = latest)
            
        Raises:
            sqlite3.Error: If migration fails
        """
        current_version = self.get_current_version()
        available_migrations = self._get_available_migrations()
        
        if not available_migrations:
            logger.info("No migrations found")
            return
        
        if target_version is None:
            target_version = max(v for v, _ in available_migrations)
        
        pending_migrations = [
            (version, path) for version, path in available_migrations
            if current_version < version <= target_version
        ]
        
        if not pending_migrations:
            logger.debug(f"Schema up to date at version {current_version}")
            return
        
        logger.info(f"Applying {len(pending_migrations)} migration(s) from version {current_version}")
        
        for version, migration_path in pending_migrations:
            self._apply_migration(version, migration_path)
        
        logger.info(f"Successfully migrated to version {target_version}")
    
    def _apply_migration(self, version: int, migration_path: Path):
        """
        Apply a single migration file.
        
        Raises:
            sqlite3.Error: If migration fails
        """
        logger.info(f"Applying migration {version}: {migration_path.name}")
        
        sql = migration_path.read_text(encoding='utf-8')
        
        # executescript() commits any pending transaction itself, so each
        # statement list runs through the transaction cursor one at a time
        statements = [s.strip() for s in sql.split(';') if s.strip()]
        try:
            with self.db.transaction() as cursor:
                for statement in statements:
                    cursor.execute(statement)
                cursor.execute(
                    "INSERT INTO schema_version (version) VALUES (?)", (version,)
                )
        except sqlite3.Error as e:
            logger.error(f"Failed to apply migration {version}: {e}")
            raise
    
    def verify_schema(self) -> bool:
        """
        Verify that database schema matches expected version.
        
        Returns:
            True if schema is up to date, False otherwise
        """
        current_version = self.get_current_version()
        available_migrations = self._get_available_migrations()
        
        if not available_migrations:
            logger.warning("No migrations found, cannot verify schema")
            return False
        
        latest_version = max(v for v, _ in available_migrations)
        
        if current_version < latest_version:
            logger.warning(
                f"Schema out of date: current={current_version}, latest={latest_version}"
            )
            return False
        
        return True
