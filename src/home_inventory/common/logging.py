"""Logging setup and per-operation structured context.

Console output uses one of three layouts (``simple``, ``detailed``, ``json``);
the optional log file is always JSON, one object per line. Fields bound with
``LogContext`` travel with every record emitted by the same thread or task,
so a backup running on the controller's worker thread never tags records
logged elsewhere.
"""

import contextvars
import json
import logging
import logging.handlers
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

_bound_fields: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "home_inventory_log_fields", default={}
)

_factory_lock = threading.Lock()
_factory_installed = False


def _install_record_factory() -> None:
    """Wrap the record factory once so records pick up the bound fields."""
    global _factory_installed
    with _factory_lock:
        if _factory_installed:
            return
        base_factory = logging.getLogRecordFactory()

        def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = base_factory(*args, **kwargs)
            fields = _bound_fields.get()
            if fields:
                record.extra_fields = dict(fields)
            return record

        logging.setLogRecordFactory(record_factory)
        _factory_installed = True


def bound_fields() -> Dict[str, Any]:
    """Fields bound in the current context."""
    return dict(_bound_fields.get())


class LogContext:
    """Bind structured fields to records logged inside the block.

    Binding is per thread (per task under asyncio). Nested blocks merge their
    fields with the enclosing ones and restore them on exit.

    Usage:
        with LogContext(operation="restore"):
            logger.info("Extracting archive")
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> "LogContext":
        _install_record_factory()
        self._token = _bound_fields.set({**_bound_fields.get(), **self.fields})
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._token is not None:
            _bound_fields.reset(self._token)
            self._token = None


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, including fields bound with LogContext."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(getattr(record, "extra_fields", {}))

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


_CONSOLE_LAYOUTS = {
    "simple": "%(levelname)-8s | %(name)s | %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
}


def _console_formatter(format: str) -> logging.Formatter:
    if format == "json":
        return StructuredFormatter()
    layout = _CONSOLE_LAYOUTS.get(format, _CONSOLE_LAYOUTS["simple"])
    return logging.Formatter(fmt=layout, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(
    level: str = "INFO",
    format: str = "simple",
    log_file: Optional[Path] = None,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """Configure the root logger for a CLI run.

    Existing root handlers are closed and replaced.

    Args:
        level: DEBUG, INFO, WARNING or ERROR
        format: Console layout (simple, detailed, json)
        log_file: Optional rotating log file, always written as JSON
        max_file_size_mb: Size at which the log file rotates
        backup_count: Rotated files to keep
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(_console_formatter(format))
    root.addHandler(console)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(StructuredFormatter())
        root.addHandler(file_handler)

    _install_record_factory()
