"""Restore: rebuild the catalog and its images from a backup archive."""

import logging
import shutil
import tempfile
import zipfile
import zlib
from contextlib import closing, contextmanager
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, Optional, Tuple, Union

from ..common.errors import CorruptedArchiveError
from ..common.logging import LogContext
from ..models import Item
from ..storage.repository import InventoryStorage
from .archive import COPY_CHUNK_SIZE, read_archive
from .errors import (
    BackupError,
    IOFailureError,
    ManifestMissingError,
    ManifestParseError,
    PathTraversalError,
    SourceUnavailableError,
    StorageWriteError,
)
from .manifest import MANIFEST_VERSION, BackupManifest
from .path_mapper import MANIFEST_NAME, PathMapper
from .results import RestoreResult

logger = logging.getLogger(__name__)

EXTRACTION_PREFIX = "restore_temp_"

Source = Union[str, Path, BinaryIO]


@contextmanager
def extraction_area(parent: Path) -> Iterator[Path]:
    """Create a uniquely named directory under ``parent`` and always remove it.
    
    A failure to remove the directory is logged and never replaces the
    outcome of the work done inside the block.
    """
    parent = Path(parent)
    parent.mkdir(parents=True, exist_ok=True)
    root = Path(tempfile.mkdtemp(prefix=EXTRACTION_PREFIX, dir=parent))
    logger.debug(f"Created extraction directory {root}")
    try:
        yield root
    finally:
        try:
            shutil.rmtree(root)
            logger.debug(f"Removed extraction directory {root}")
        except OSError as e:
            logger.warning(f"Could not remove extraction directory {root}: {e}")


def confined_path(root: Path, name: str) -> Path:
    """Resolve archive entry ``name`` under ``root``.
    
    Args:
        root: Resolved extraction directory
        name: Untrusted entry name from the archive
        
    Raises:
        PathTraversalError: If the entry would land outside ``root``
    """
    if not name or '\x00' in name:
        raise PathTraversalError(f"Archive entry name {name!r} is not a valid path", entry=name)
    candidate = (root / name).resolve()
    if not candidate.is_relative_to(root):
        raise PathTraversalError(
            f"Archive entry {name!r} escapes the extraction directory", entry=name
        )
    return candidate


def _is_readable(stream: BinaryIO) -> bool:
    if getattr(stream, 'closed', False):
        return False
    try:
        return stream.readable()
    except AttributeError:
        return hasattr(stream, 'read')
    except ValueError:
        return False


class RestoreEngine:
    """Restores a backup archive into the catalog.
    
    Steps: extract every entry into a private temporary directory (rejecting
    entries that escape it), parse ``inventory.json``, insert locations and
    then items with insert-or-ignore semantics, copying each referenced image
    into the storage root. The temporary directory is removed on every exit
    path.
    
    Restore is not transactional: records inserted before a failure stay.
    """
    
    def __init__(
        self,
        storage: InventoryStorage,
        path_mapper: PathMapper,
        temp_parent: Optional[Path] = None
    ):
        """
        Args:
            storage: Catalog to restore into
            path_mapper: Re-homes archive image references into the storage root
            temp_parent: Where extraction directories are created (system temp dir by default)
        """
        self.storage = storage
        self.path_mapper = path_mapper
        self.temp_parent = Path(temp_parent) if temp_parent else Path(tempfile.gettempdir())
    
    def perform_restore(self, source: Source) -> RestoreResult:
        """Restore the catalog from ``source``.
        
        Args:
            source: Archive file path or readable binary stream
            
        Returns:
            Success with insert/skip counters, or a failure tagged
            SOURCE_UNAVAILABLE, PATH_TRAVERSAL, MANIFEST_MISSING,
            MANIFEST_PARSE_ERROR, STORAGE_WRITE_FAILED or IO_FAILURE. Counters
            are filled on failure too, reflecting what was already committed.
        """
        stats = {
            'locations_inserted': 0,
            'locations_skipped': 0,
            'items_inserted': 0,
            'items_skipped': 0,
            'images': 0,
        }
        with LogContext(operation="restore"):
            try:
                with self._open_source(source) as stream:
                    self._restore(stream, stats)
            except BackupError as e:
                logger.error(f"Restore failed ({e.kind.value}): {e.message}")
                return RestoreResult.from_error(e, **stats)
            except OSError as e:
                logger.error(f"Restore failed (io_failure): {e}")
                return RestoreResult.from_error(IOFailureError(f"I/O error: {e}"), **stats)
            except Exception as e:
                logger.exception(f"Restore failed unexpectedly: {e}")
                return RestoreResult.from_error(IOFailureError(f"Unexpected error: {e}"), **stats)
        
        logger.info(
            f"Restore complete: {stats['locations_inserted']} location(s) and "
            f"{stats['items_inserted']} item(s) added, {stats['locations_skipped']} location(s) and "
            f"{stats['items_skipped']} item(s) already present, {stats['images']} image(s) restored"
        )
        return RestoreResult.success("Restore completed successfully", **stats)
    
    @contextmanager
    def _open_source(self, source: Source) -> Iterator[BinaryIO]:
        if isinstance(source, (str, Path)):
            try:
                stream = open(source, 'rb')
            except OSError as e:
                raise SourceUnavailableError(f"Cannot open backup {source}: {e}", path=str(source)) from e
            with stream:
                yield stream
        else:
            if not _is_readable(source):
                raise SourceUnavailableError("Backup source stream is not readable")
            yield source
    
    def _restore(self, stream: BinaryIO, stats: Dict[str, int]) -> None:
        with extraction_area(self.temp_parent) as temp_root:
            manifest, parse_error = self._extract(stream, temp_root)
            if parse_error is not None:
                raise parse_error
            if manifest is None:
                raise ManifestMissingError(f"Invalid backup: {MANIFEST_NAME} missing")
            self._apply(manifest, temp_root, stats)
    
    def _extract(
        self, stream: BinaryIO, temp_root: Path
    ) -> Tuple[Optional[BackupManifest], Optional[ManifestParseError]]:
        root = temp_root.resolve()
        manifest: Optional[BackupManifest] = None
        parse_error: Optional[ManifestParseError] = None
        count = 0
        
        try:
            with closing(read_archive(stream)) as entries:
                for entry in entries:
                    target = confined_path(root, entry.name)
                    if entry.is_dir:
                        target.mkdir(parents=True, exist_ok=True)
                        continue
                    
                    target.parent.mkdir(parents=True, exist_ok=True)
                    with open(target, 'wb') as out:
                        shutil.copyfileobj(entry.stream, out, COPY_CHUNK_SIZE)
                    count += 1
                    
                    if entry.name == MANIFEST_NAME:
                        # Keep extracting on a bad manifest; the error is reported afterwards
                        try:
                            manifest = BackupManifest.from_json(target.read_bytes())
                            parse_error = None
                        except ManifestParseError as e:
                            logger.warning(f"Manifest could not be parsed: {e.message}")
                            manifest, parse_error = None, e
        except CorruptedArchiveError as e:
            raise IOFailureError(e.message) from e
        except (OSError, EOFError, zipfile.BadZipFile, zlib.error) as e:
            raise IOFailureError(f"Extracting archive failed: {e}") from e
        
        logger.debug(f"Extracted {count} file(s) into {temp_root}")
        return manifest, parse_error
    
    def _apply(self, manifest: BackupManifest, temp_root: Path, stats: Dict[str, int]) -> None:
        if manifest.version > MANIFEST_VERSION:
            logger.warning(f"Backup manifest version {manifest.version} is newer than supported, unknown fields ignored")
        
        # Parents first: items reference locations
        for location in manifest.locations:
            try:
                inserted = self.storage.insert_location(location)
            except Exception as e:
                raise StorageWriteError(
                    f"Cannot restore location {location.name!r}: {e}", location_id=location.id
                ) from e
            stats['locations_inserted' if inserted else 'locations_skipped'] += 1
        
        rehomed: Dict[str, str] = {}
        for item in manifest.items:
            restored = self._rehome_images(item, temp_root, rehomed)
            try:
                inserted = self.storage.insert_item(restored)
            except Exception as e:
                raise StorageWriteError(
                    f"Cannot restore item {item.name!r}: {e}", item_id=item.id
                ) from e
            stats['items_inserted' if inserted else 'items_skipped'] += 1
        
        stats['images'] = sum(1 for ref, new in rehomed.items() if new != ref)
    
    def _rehome_images(self, item: Item, temp_root: Path, rehomed: Dict[str, str]) -> Item:
        refs = []
        for ref in item.image_refs:
            if ref not in rehomed:
                try:
                    rehomed[ref] = self.path_mapper.rehome(ref, temp_root)
                except OSError as e:
                    raise IOFailureError(f"Cannot restore image {ref}: {e}", item_id=item.id) from e
            refs.append(rehomed[ref])
        return item.model_copy(update={'image_refs': refs})
