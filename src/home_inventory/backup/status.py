"""User-facing progress state for backup and restore."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from .backup_engine import BackupEngine, Destination
from .restore_engine import RestoreEngine, Source
from .results import OperationResult

logger = logging.getLogger(__name__)


class StatusKind(Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class BackupStatus:
    kind: StatusKind
    message: str = ""

    @classmethod
    def idle(cls) -> "BackupStatus":
        return cls(StatusKind.IDLE)

    @classmethod
    def in_progress(cls) -> "BackupStatus":
        return cls(StatusKind.IN_PROGRESS)

    @classmethod
    def succeeded(cls, message: str) -> "BackupStatus":
        return cls(StatusKind.SUCCEEDED, message)

    @classmethod
    def failed(cls, message: str) -> "BackupStatus":
        return cls(StatusKind.FAILED, message)

    @property
    def is_terminal(self) -> bool:
        return self.kind in (StatusKind.SUCCEEDED, StatusKind.FAILED)


StatusListener = Callable[[BackupStatus], None]


class BackupController:
    """Runs backup and restore off the caller's thread and tracks their status.
    
    Operations run on a single worker thread, so at most one backup or restore
    touches the catalog at a time; later submissions queue behind it.
    """
    
    def __init__(self, backup_engine: BackupEngine, restore_engine: RestoreEngine):
        self.backup_engine = backup_engine
        self.restore_engine = restore_engine
        self._status = BackupStatus.idle()
        self._lock = threading.Lock()
        self._listeners: List[StatusListener] = []
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="inventory-backup")
    
    @property
    def status(self) -> BackupStatus:
        with self._lock:
            return self._status
    
    def add_listener(self, listener: StatusListener) -> None:
        """Call ``listener`` with every status change."""
        with self._lock:
            self._listeners.append(listener)
    
    def _set_status(self, status: BackupStatus) -> None:
        with self._lock:
            self._status = status
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(status)
            except Exception:
                logger.exception("Status listener failed")
    
    def backup(self, destination: Destination) -> BackupStatus:
        """Run a backup on the calling thread and return the terminal status."""
        self._set_status(BackupStatus.in_progress())
        result = self.backup_engine.perform_backup(destination)
        return self._finish("Backup", result)
    
    def restore(self, source: Source) -> BackupStatus:
        """Run a restore on the calling thread and return the terminal status."""
        self._set_status(BackupStatus.in_progress())
        result = self.restore_engine.perform_restore(source)
        return self._finish("Restore", result)
    
    def submit_backup(self, destination: Destination) -> "Future[BackupStatus]":
        return self._executor.submit(self.backup, destination)
    
    def submit_restore(self, source: Source) -> "Future[BackupStatus]":
        return self._executor.submit(self.restore, source)
    
    def _finish(self, operation: str, result: OperationResult) -> BackupStatus:
        if result.ok:
            status = BackupStatus.succeeded(f"{operation} completed successfully")
        else:
            status = BackupStatus.failed(f"{operation} failed: {result.message}")
        self._set_status(status)
        return status
    
    def reset(self) -> None:
        self._set_status(BackupStatus.idle())
    
    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
    
    def __enter__(self) -> "BackupController":
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
