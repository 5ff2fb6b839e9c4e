import logging
from typing import List, Set

from . import config
from .database.ops import DBOperations
from .exceptions import ConfigurationError
from .models import CandidateRef


class CandidateSelector:
    """
    Picks the files whose metadata still needs extracting.

    At most `max_files` are returned per run, so a large backlog takes
    several runs to drain but no single run grows unbounded.
    """
    def __init__(self, db_ops: DBOperations, max_files: int = config.MAX_FILES):
        if max_files <= 0:
            raise ConfigurationError(f"max_files must be positive, got {max_files}")
        self.db = db_ops
        self.max_files = max_files

    def select_candidates(self) -> List[CandidateRef]:
        candidates = self.db.fetch_candidates(config.get_supported_mime_types(), self.max_files)
        logging.debug(f"Selected {len(candidates)} candidate files (limit {self.max_files}).")
        return candidates


class OrphanFinder:
    """Finds metadata rows whose content no longer backs any file."""
    def __init__(self, db_ops: DBOperations):
        self.db = db_ops

    def find_orphans(self) -> Set[str]:
        return self.db.fetch_orphan_hashes()
