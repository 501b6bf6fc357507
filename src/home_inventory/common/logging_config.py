"""The ``[logging]`` section of the configuration."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .config_utils import expand_path_variables

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["simple", "detailed", "json"]


class LoggingConfig(BaseModel):
    """Console verbosity and layout, plus an optional rotating JSON log file."""

    model_config = ConfigDict(extra='forbid')

    level: LogLevel = "INFO"
    format: LogFormat = Field(default="simple", description="Console layout; the log file is always JSON")
    file: Optional[str] = Field(default=None, description="Log file path, ${VAR} placeholders allowed")
    max_file_size_mb: int = Field(default=10, ge=1, description="Rotate the log file at this size")
    backup_count: int = Field(default=5, ge=0, description="Rotated log files to keep")

    @field_validator('level', 'format', mode='before')
    @classmethod
    def normalize_case(cls, v: Any, info: ValidationInfo) -> Any:
        """Accept ``debug`` or ``JSON``; levels are upper case, layouts lower case."""
        if not isinstance(v, str):
            return v
        return v.upper() if info.field_name == 'level' else v.lower()

    @field_validator('file')
    @classmethod
    def expand_file(cls, v: Optional[str]) -> Optional[str]:
        return expand_path_variables(v) if v else v
