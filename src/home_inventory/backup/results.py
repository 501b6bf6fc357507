"""Tagged results returned by the backup and restore engines."""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .errors import BackupError, BackupErrorKind


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one backup or restore.

    ``error`` is None on success. ``stats`` holds counters such as
    ``images`` or ``items_inserted``.
    """
    error: Optional[BackupErrorKind] = None
    message: str = ""
    stats: Dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, message: str = "", **stats: int) -> "OperationResult":
        return cls(error=None, message=message, stats=dict(stats))

    @classmethod
    def failure(cls, kind: BackupErrorKind, message: str, **stats: int) -> "OperationResult":
        return cls(error=kind, message=message, stats=dict(stats))

    @classmethod
    def from_error(cls, error: BackupError, **stats: int) -> "OperationResult":
        return cls.failure(error.kind, error.message, **stats)


BackupResult = OperationResult
RestoreResult = OperationResult
