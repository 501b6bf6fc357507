"""Zip container codec: one manifest entry plus named binary entries."""

import io
import logging
import shutil
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, Optional, Tuple, Union

from ..common.errors import ArchiveError, CorruptedArchiveError
from ..common.path_utils import normalize_path

logger = logging.getLogger(__name__)

# Every entry gets the same timestamp so identical inputs give identical bytes
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
COPY_CHUNK_SIZE = 1024 * 1024
SPOOL_MAX_SIZE = 16 * 1024 * 1024

EntryData = Union[bytes, BinaryIO, Path]


@dataclass
class ArchiveEntry:
    """One entry read from a container.

    ``stream`` is only readable until the reader advances to the next entry.
    """
    name: str
    is_dir: bool
    size: int
    stream: BinaryIO


class ArchiveWriter:
    """Writes named entries, in call order, into a zip container.

    Works on non-seekable destinations; zipfile then emits data descriptors.
    
    Usage:
        with ArchiveWriter(fp) as writer:
            writer.add_bytes("inventory.json", data)
            writer.add_file("images/a.jpg", path)
    """
    
    def __init__(self, destination: BinaryIO, compression_level: int = 6):
        self.destination = destination
        self.compression_level = compression_level
        self._zip: Optional[zipfile.ZipFile] = None
        self.names: list[str] = []
    
    def __enter__(self) -> "ArchiveWriter":
        self._zip = zipfile.ZipFile(
            self.destination,
            'w',
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=self.compression_level,
        )
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
    
    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None
    
    def _entry_info(self, name: str) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(name, date_time=FIXED_DATE_TIME)
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = 0o644 << 16
        return info
    
    def _require_open(self) -> zipfile.ZipFile:
        if self._zip is None:
            raise ArchiveError("Archive writer is not open")
        return self._zip
    
    def add_bytes(self, name: str, data: bytes) -> None:
        zf = self._require_open()
        zf.writestr(self._entry_info(name), data, compresslevel=self.compression_level)
        self.names.append(name)
        logger.debug(f"Wrote archive entry {name} ({len(data)} bytes)")
    
    def add_stream(self, name: str, source: BinaryIO) -> None:
        zf = self._require_open()
        info = self._entry_info(name)
        # Entries opened for writing carry their own level; the slot was renamed in Python 3.13
        if hasattr(info, 'compress_level'):
            info.compress_level = self.compression_level
        else:
            info._compresslevel = self.compression_level
        with zf.open(info, 'w') as out:
            shutil.copyfileobj(source, out, COPY_CHUNK_SIZE)
        self.names.append(name)
        logger.debug(f"Wrote archive entry {name}")
    
    def add_file(self, name: str, path: Path) -> None:
        with open(path, 'rb') as source:
            self.add_stream(name, source)
    
    def add(self, name: str, data: EntryData) -> None:
        if isinstance(data, (bytes, bytearray)):
            self.add_bytes(name, bytes(data))
        elif isinstance(data, Path):
            self.add_file(name, data)
        else:
            self.add_stream(name, data)


def write_archive(
    destination: BinaryIO,
    entries: Iterable[Tuple[str, EntryData]],
    compression_level: int = 6
) -> None:
    """Write ``(name, data)`` pairs into a single zip container on ``destination``.
    
    Args:
        destination: Writable binary stream
        entries: Ordered entries; data is bytes, a readable binary stream or a file path
        compression_level: DEFLATE level 0-9
    """
    with ArchiveWriter(destination, compression_level=compression_level) as writer:
        for name, data in entries:
            writer.add(name, data)


def _is_seekable(stream: BinaryIO) -> bool:
    try:
        return stream.seekable()
    except (AttributeError, ValueError):
        return False


def read_archive(source: BinaryIO) -> Iterator[ArchiveEntry]:
    """Yield the entries of a zip container lazily, in container order.
    
    Entry names are normalized to forward slashes but otherwise untrusted:
    callers extracting to disk must confine them.
    
    Args:
        source: Readable binary stream; spooled to a temporary file if not seekable
        
    Raises:
        CorruptedArchiveError: If the source is not a zip container
    """
    with tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE) as spool:
        if not _is_seekable(source):
            shutil.copyfileobj(source, spool, COPY_CHUNK_SIZE)
            spool.seek(0)
            source = spool
        
        try:
            zf = zipfile.ZipFile(source, 'r')
        except zipfile.BadZipFile as e:
            raise CorruptedArchiveError(f"Not a valid backup archive: {e}") from e
        
        with zf:
            for info in zf.infolist():
                name = normalize_path(info.filename)
                if info.is_dir() or name.endswith('/'):
                    yield ArchiveEntry(name=name, is_dir=True, size=0, stream=io.BytesIO())
                    continue
                with zf.open(info, 'r') as stream:
                    yield ArchiveEntry(name=name, is_dir=False, size=info.file_size, stream=stream)
