"""Backup and restore errors."""

from enum import Enum

from ..common.errors import InventoryError


class BackupErrorKind(Enum):
    """Why a backup or restore operation failed."""
    SINK_UNAVAILABLE = "sink_unavailable"
    SOURCE_UNAVAILABLE = "source_unavailable"
    STORAGE_READ_FAILED = "storage_read_failed"
    STORAGE_WRITE_FAILED = "storage_write_failed"
    IO_FAILURE = "io_failure"
    PATH_TRAVERSAL = "path_traversal"
    MANIFEST_MISSING = "manifest_missing"
    MANIFEST_PARSE_ERROR = "manifest_parse_error"


class BackupError(InventoryError):
    """Base error for backup and restore operations."""
    kind: BackupErrorKind = BackupErrorKind.IO_FAILURE


class SinkUnavailableError(BackupError):
    """The backup destination could not be opened for writing."""
    kind = BackupErrorKind.SINK_UNAVAILABLE


class SourceUnavailableError(BackupError):
    """The restore source could not be opened for reading."""
    kind = BackupErrorKind.SOURCE_UNAVAILABLE


class StorageReadError(BackupError):
    """The catalog snapshot could not be read."""
    kind = BackupErrorKind.STORAGE_READ_FAILED


class StorageWriteError(BackupError):
    """A restored record could not be written to the catalog."""
    kind = BackupErrorKind.STORAGE_WRITE_FAILED


class IOFailureError(BackupError):
    """Reading or writing archive or image bytes failed."""
    kind = BackupErrorKind.IO_FAILURE


class PathTraversalError(BackupError):
    """An archive entry resolves outside the extraction directory."""
    kind = BackupErrorKind.PATH_TRAVERSAL


class ManifestMissingError(BackupError):
    """The archive has no inventory manifest."""
    kind = BackupErrorKind.MANIFEST_MISSING


class ManifestParseError(BackupError):
    """The inventory manifest is not valid."""
    kind = BackupErrorKind.MANIFEST_PARSE_ERROR
