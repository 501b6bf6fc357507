"""Backup and restore of the whole inventory catalog as one zip archive."""

from .archive import ArchiveEntry, ArchiveWriter, read_archive, write_archive
from .backup_engine import BackupEngine, backup_file_name
from .errors import BackupError, BackupErrorKind
from .manifest import BackupManifest
from .path_mapper import IMAGES_PREFIX, MANIFEST_NAME, PathMapper
from .restore_engine import RestoreEngine
from .results import BackupResult, OperationResult, RestoreResult
from .status import BackupController, BackupStatus, StatusKind

__all__ = [
    'ArchiveEntry',
    'ArchiveWriter',
    'read_archive',
    'write_archive',
    'BackupEngine',
    'backup_file_name',
    'BackupError',
    'BackupErrorKind',
    'BackupManifest',
    'IMAGES_PREFIX',
    'MANIFEST_NAME',
    'PathMapper',
    'RestoreEngine',
    'BackupResult',
    'OperationResult',
    'RestoreResult',
    'BackupController',
    'BackupStatus',
    'StatusKind',
]
