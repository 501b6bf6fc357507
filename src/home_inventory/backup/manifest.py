"""The structured payload stored as the archive's manifest entry."""

import time
from typing import List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..models import Item, Location
from .errors import ManifestParseError

MANIFEST_VERSION = 1


def _now_millis() -> int:
    return int(time.time() * 1000)


class BackupManifest(BaseModel):
    """Snapshot of the whole catalog.

    Items carry export-form image references (``images/<file>`` for owned
    images). Unknown fields are ignored on read so newer archives still load.
    """

    model_config = ConfigDict(extra='ignore', frozen=True)

    version: int = MANIFEST_VERSION
    timestamp: int = Field(default_factory=_now_millis)
    locations: List[Location] = Field(default_factory=list)
    items: List[Item] = Field(default_factory=list)

    def to_json(self) -> bytes:
        return self.model_dump_json(by_alias=True, indent=2).encode('utf-8')

    @classmethod
    def from_json(cls, data: bytes | str) -> "BackupManifest":
        """Parse manifest text.

        Raises:
            ManifestParseError: If the text is not a valid manifest
        """
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise ManifestParseError(
                f"Invalid inventory manifest: {e.error_count()} error(s), first: {e.errors()[0]['msg']}"
            ) from e
