"""
Flat string-keyed, string-valued persistent stores.

Everything lift-tracker persists goes through a BlobStore: one key per
table, one JSON document per key.  DirectoryBlobStore keeps each key in its
own file; MemoryBlobStore keeps them in a dict.
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class BlobStore(Protocol):
    """Minimal key-value interface the table store is built on."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryBlobStore:
    """In-process blob store; contents vanish with the object."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class DirectoryBlobStore:
    """
    Blob store backed by a directory with one ``<key>.json`` file per key.

    Writes go to a temporary file in the same directory that is then renamed
    over the target, so a reader sees either the old blob or the new one.
    """

    def __init__(self, root: str | Path):
        """
        Initialize the store.

        Args:
            root: Directory holding the blob files (created on first write)
        """
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        """Return the file that holds key."""
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid blob key: {key!r}")
        return self.root / f"{key}.json"

    def exists(self) -> bool:
        """Check if the data directory exists."""
        return self.root.is_dir()

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        self.root.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.root)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            # Leave no stray temp files behind on failure
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        logger.debug("Wrote %d bytes to %s", len(value), path)
