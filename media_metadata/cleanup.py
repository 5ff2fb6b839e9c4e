import logging
from typing import Set

from . import config
from .database.ops import DBOperations


class CleanupExecutor:
    def __init__(self, db_ops: DBOperations, chunk_size: int = config.DELETE_CHUNK_SIZE):
        self.db = db_ops
        self.chunk_size = chunk_size

    def delete(self, contenthashes: Set[str]) -> int:
        """Removes the metadata rows for the given content hashes. Returns rows removed."""
        if not contenthashes:
            return 0
        removed = self.db.delete_metadata_records(contenthashes, chunk_size=self.chunk_size)
        logging.debug(f"Removed {removed} metadata records.")
        return removed
