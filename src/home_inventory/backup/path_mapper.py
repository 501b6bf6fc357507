"""Mapping between on-device image paths and archive entry names."""

import logging
import shutil
from pathlib import Path, PurePosixPath

from ..common.path_utils import normalize_path

logger = logging.getLogger(__name__)

MANIFEST_NAME = "inventory.json"
IMAGES_PREFIX = "images/"


class PathMapper:
    """Rewrites image references for export and re-homes them on import.
    
    An *owned* reference is an existing file inside the private storage root
    ``files_dir``; it is exported as ``images/<basename>``. Every other
    reference (content URIs, files elsewhere, missing files) is foreign and
    passes through unchanged in both directions.
    
    Two owned files with the same basename map to the same archive name;
    the last one extracted wins.
    """
    
    def __init__(self, files_dir: Path):
        """
        Args:
            files_dir: Private storage root; restored images are copied here
        """
        self.files_dir = Path(files_dir)
    
    def is_owned(self, ref: str) -> bool:
        """Return True if ``ref`` is an existing file inside the storage root."""
        if not ref:
            return False
        try:
            path = Path(ref)
            if not path.is_absolute() or not path.is_file():
                return False
            return path.resolve().is_relative_to(self.files_dir.resolve())
        except (OSError, ValueError):
            return False
    
    @staticmethod
    def archive_name_for(path: Path | str) -> str:
        return IMAGES_PREFIX + Path(path).name
    
    def to_archive_name(self, ref: str) -> str:
        """Export direction: owned path -> ``images/<basename>``, else unchanged."""
        if self.is_owned(ref):
            return self.archive_name_for(ref)
        return ref
    
    @staticmethod
    def is_archive_ref(ref: str) -> bool:
        return normalize_path(ref).startswith(IMAGES_PREFIX)
    
    @staticmethod
    def basename(ref: str) -> str:
        """Final component of an archive reference; never contains a separator."""
        return PurePosixPath(normalize_path(ref)).name
    
    def extracted_path(self, ref: str, temp_root: Path) -> Path:
        """Where the bytes for archive reference ``ref`` land during extraction."""
        return Path(temp_root) / IMAGES_PREFIX.rstrip('/') / self.basename(ref)
    
    def rehome(self, ref: str, temp_root: Path) -> str:
        """Restore direction: copy an extracted image into the storage root.
        
        Args:
            ref: Image reference from the manifest
            temp_root: Extraction directory of the current restore
            
        Returns:
            The new absolute path for archive references whose file was
            extracted; ``ref`` unchanged otherwise
            
        Raises:
            OSError: If copying the extracted file fails
        """
        if not self.is_archive_ref(ref):
            return ref
        
        name = self.basename(ref)
        source = self.extracted_path(ref, temp_root)
        if not name or not source.is_file():
            logger.warning(f"Image {ref} referenced by manifest is not in the archive, keeping reference")
            return ref
        
        self.files_dir.mkdir(parents=True, exist_ok=True)
        destination = self.files_dir / name
        shutil.copyfile(source, destination)
        logger.debug(f"Restored image {ref} -> {destination}")
        return str(destination.absolute())
