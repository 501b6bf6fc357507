"""Backup: snapshot the catalog and its owned images into one archive."""

import logging
import os
import tempfile
import time
import zipfile
from pathlib import Path
from typing import BinaryIO, Dict, List, Tuple, Union

from ..common.logging import LogContext
from ..models import Item, Location
from ..storage.repository import InventoryStorage
from .archive import ArchiveWriter
from .errors import BackupError, IOFailureError, SinkUnavailableError, StorageReadError
from .manifest import BackupManifest
from .path_mapper import MANIFEST_NAME, PathMapper
from .results import BackupResult

logger = logging.getLogger(__name__)

DEFAULT_FILE_PREFIX = "inventory_backup"

Destination = Union[str, Path, BinaryIO]


def backup_file_name(timestamp_ms: int | None = None, prefix: str = DEFAULT_FILE_PREFIX) -> str:
    """Conventional archive file name, e.g. ``inventory_backup_1700000000000.zip``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{prefix}_{timestamp_ms}.zip"


def _is_writable(stream: BinaryIO) -> bool:
    if getattr(stream, "closed", False):
        return False
    try:
        return stream.writable()
    except AttributeError:
        return hasattr(stream, "write")
    except ValueError:
        return False


class BackupEngine:
    """Writes the whole catalog into a single portable zip archive.
    
    The archive holds ``inventory.json`` first, then one ``images/<file>``
    entry per distinct owned image. Items in storage are never modified.
    """
    
    def __init__(
        self,
        storage: InventoryStorage,
        path_mapper: PathMapper,
        compression_level: int = 6
    ):
        """
        Args:
            storage: Catalog to snapshot
            path_mapper: Decides which image references are exported as files
            compression_level: DEFLATE level 0-9 for archive entries
        """
        self.storage = storage
        self.path_mapper = path_mapper
        self.compression_level = compression_level
    
    def perform_backup(self, destination: Destination) -> BackupResult:
        """Back up the catalog to ``destination``.
        
        A path destination is written through a temporary sibling file that
        replaces it only on success. A stream destination is written in place
        and must be discarded by the caller if the result is a failure.
        
        Args:
            destination: File path or writable binary stream
            
        Returns:
            Success with ``locations``, ``items`` and ``images`` counts, or a
            failure tagged SINK_UNAVAILABLE, STORAGE_READ_FAILED or IO_FAILURE
        """
        with LogContext(operation="backup"):
            try:
                if isinstance(destination, (str, Path)):
                    stats = self._backup_to_path(Path(destination))
                else:
                    if not _is_writable(destination):
                        raise SinkUnavailableError("Backup destination stream is not writable")
                    stats = self._write_archive(destination)
            except BackupError as e:
                logger.error(f"Backup failed ({e.kind.value}): {e.message}")
                return BackupResult.from_error(e)
            except Exception as e:
                logger.exception(f"Backup failed unexpectedly: {e}")
                return BackupResult.from_error(IOFailureError(f"Unexpected error: {e}"))
        
        logger.info(
            f"Backup complete: {stats['locations']} location(s), "
            f"{stats['items']} item(s), {stats['images']} image(s)"
        )
        return BackupResult.success("Backup completed successfully", **stats)
    
    def _backup_to_path(self, path: Path) -> Dict[str, int]:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".part", dir=path.parent
            )
        except OSError as e:
            raise SinkUnavailableError(f"Cannot write backup to {path}: {e}", path=str(path)) from e
        
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, 'wb') as out:
                stats = self._write_archive(out)
            os.replace(temp_path, path)
        except BaseException:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove partial backup {temp_path}: {e}")
            raise
        
        logger.info(f"Backup written to {path}")
        return stats
    
    def _snapshot(self) -> Tuple[List[Location], List[Item]]:
        try:
            locations, items = self.storage.snapshot()
        except Exception as e:
            raise StorageReadError(f"Cannot read catalog: {e}") from e
        logger.debug(f"Snapshot: {len(locations)} location(s), {len(items)} item(s)")
        return locations, items
    
    def _owned_images(self, items: List[Item]) -> Dict[str, str]:
        """Map each owned image reference to its archive name, in snapshot order.
        
        The manifest references and the image entries are both built from this map.
        """
        owned: Dict[str, str] = {}
        for item in items:
            for ref in item.image_refs:
                if ref not in owned and self.path_mapper.is_owned(ref):
                    owned[ref] = self.path_mapper.archive_name_for(ref)
        return owned
    
    @staticmethod
    def _export_form(items: List[Item], owned: Dict[str, str]) -> List[Item]:
        return [
            item.model_copy(update={
                'image_refs': [owned.get(ref, ref) for ref in item.image_refs]
            })
            for item in items
        ]
    
    def _write_archive(self, out: BinaryIO) -> Dict[str, int]:
        locations, items = self._snapshot()
        owned = self._owned_images(items)
        manifest = BackupManifest(locations=locations, items=self._export_form(items, owned))
        
        written: Dict[str, str] = {}
        try:
            with ArchiveWriter(out, compression_level=self.compression_level) as writer:
                writer.add_bytes(MANIFEST_NAME, manifest.to_json())
                for ref, name in owned.items():
                    if name in written:
                        logger.warning(
                            f"Images {written[name]} and {ref} share archive name {name}; "
                            f"only the first is stored"
                        )
                        continue
                    writer.add_file(name, Path(ref))
                    written[name] = ref
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise IOFailureError(f"Writing archive failed: {e}") from e
        
        return {
            'locations': len(locations),
            'items': len(items),
            'images': len(written),
        }
