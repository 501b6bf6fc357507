"""Configuration schema for the inventory application."""

from pydantic import BaseModel, Field, ConfigDict, field_validator

from .common import LoggingConfig
from .common.config_utils import expand_path_variables


class StorageConfig(BaseModel):
    """Where the catalog database and owned image files live."""
    
    model_config = ConfigDict(extra='forbid', validate_default=True)
    
    files_dir: str = Field(
        default="${USER_DATA}/files",
        description="Private storage root; images under it are owned and exported"
    )
    database_path: str = Field(
        default="${USER_DATA}/inventory.db",
        description="SQLite catalog database"
    )
    cache_dir: str = Field(
        default="${USER_CACHE}",
        description="Parent directory for temporary restore extraction areas"
    )
    
    @field_validator('files_dir', 'database_path', 'cache_dir', mode='before')
    @classmethod
    def expand_paths(cls, v: str) -> str:
        """Expand ${VAR} in paths."""
        return expand_path_variables(v)


class BackupSettings(BaseModel):
    """Archive naming and compression."""
    
    model_config = ConfigDict(extra='forbid')
    
    file_prefix: str = Field(
        default="inventory_backup",
        min_length=1,
        description="Archive file name prefix; the timestamp and .zip are appended"
    )
    compression_level: int = Field(
        default=6,
        ge=0,
        le=9,
        description="DEFLATE compression level for archive entries"
    )


class InventoryConfig(BaseModel):
    """Root configuration."""
    
    model_config = ConfigDict(extra='forbid')
    
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    backup: BackupSettings = Field(default_factory=BackupSettings)
