import logging
from enum import Enum
from typing import Optional

from . import config
from .cleanup import CleanupExecutor
from .database.ops import DBOperations
from .extraction import ExtractionPipeline
from .models import RunResult
from .probing.prober import Prober
from .reporting import RunReporter
from .selection import CandidateSelector, OrphanFinder
from .storage.filestore import FileStore


class Stage(Enum):
    SELECT = "select"
    EXTRACT = "extract"
    REPORT = "report"
    FIND_ORPHANS = "find_orphans"
    CLEAN = "clean"


class MetadataSyncTask:
    """
    One reconciliation pass of the file index against the metadata table.

    The task holds no lock: the scheduler must not start a run while another
    is still going. There is no retry either; a fatal error stops the pass
    and is raised to the scheduler, which runs the whole task again later.
    """
    def __init__(self,
                 db_ops: DBOperations,
                 file_store: FileStore,
                 prober: Prober,
                 max_files: int = config.MAX_FILES,
                 reporter: Optional[RunReporter] = None,
                 show_progress: bool = False):
        self.selector = CandidateSelector(db_ops, max_files=max_files)
        self.pipeline = ExtractionPipeline(db_ops, file_store, prober, show_progress=show_progress)
        self.reporter = reporter or RunReporter()
        self.orphan_finder = OrphanFinder(db_ops)
        self.cleaner = CleanupExecutor(db_ops)

        self.stage: Optional[Stage] = None
        self.last_result: Optional[RunResult] = None

    def get_name(self) -> str:
        """Human readable name of the task, for scheduler listings."""
        return config.TASK_NAME

    def execute(self):
        """
        Runs SELECT -> EXTRACT -> REPORT -> FIND_ORPHANS -> CLEAN.
        Raises on any fatal error; the remaining stages are skipped.
        """
        prefix = config.LOG_PREFIX
        logging.info(f"{prefix} Processing media file metadata")
        self.last_result = None

        try:
            # --- Step 1: Select a stack of files ---
            self.stage = Stage.SELECT
            candidates = self.selector.select_candidates()

            # --- Step 2: Extract and store their metadata ---
            self.stage = Stage.EXTRACT
            result = self.pipeline.process(candidates)
            self.last_result = result

            # --- Step 3: Report ---
            self.stage = Stage.REPORT
            self._report(result)

            # --- Step 4: Find metadata left behind by deleted files ---
            self.stage = Stage.FIND_ORPHANS
            logging.info(f"{prefix} Cleaning metadata table")
            orphans = self.orphan_finder.find_orphans()

            # --- Step 5: Remove it ---
            self.stage = Stage.CLEAN
            if orphans:
                logging.info(f"{prefix} Count of metadata records to remove: {len(orphans)}")
                self.cleaner.delete(orphans)
        except Exception:
            logging.error(f"{prefix} Run aborted during {self.stage.value} stage.")
            raise

        self.stage = None

    def _report(self, result: RunResult):
        try:
            self.reporter.report(result)
        except Exception as e:
            # A broken log sink must not cost us the cleanup stage
            logging.warning(f"Run report failed: {e}")
