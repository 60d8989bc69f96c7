"""
Named tables of records on top of a BlobStore.

Each table is a JSON object mapping entity id → record, stored under the
table's name.  Tables are always loaded and saved whole.
"""

import json
import logging
from typing import Any

from ..core.errors import CorruptStorageError
from .blob_store import BlobStore

logger = logging.getLogger(__name__)

Record = dict[str, Any]
Table = dict[str, Record]


class TableStore:
    """Loads and saves whole tables as single blobs."""

    def __init__(self, blobs: BlobStore):
        self.blobs = blobs

    def load(self, table_name: str) -> Table:
        """
        Load a table.

        Args:
            table_name: Blob key of the table

        Returns:
            Mapping of id to record; empty if the table was never saved

        Raises:
            CorruptStorageError: If the stored blob is not UTF-8 text holding a
                JSON object of objects
        """
        try:
            raw = self.blobs.get(table_name)
        except UnicodeDecodeError as e:
            raise CorruptStorageError(table_name, f"not valid UTF-8: {e}") from e
        if raw is None:
            logger.debug("Table %s not found, starting empty", table_name)
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptStorageError(table_name, str(e)) from e

        if not isinstance(data, dict):
            raise CorruptStorageError(table_name, f"expected an object, got {type(data).__name__}")
        for entity_id, record in data.items():
            if not isinstance(record, dict):
                raise CorruptStorageError(
                    table_name, f"record {entity_id!r} is {type(record).__name__}, not an object"
                )

        logger.debug("Loaded %d records from %s", len(data), table_name)
        return data

    def save(self, table_name: str, table: Table) -> None:
        """Serialize the full table and overwrite its blob in one write."""
        self.blobs.set(table_name, json.dumps(table, indent=2))
        logger.debug("Saved %d records to %s", len(table), table_name)
