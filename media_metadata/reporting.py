import csv
import logging
from pathlib import Path
from typing import Optional

from . import config
from .models import RunResult


class RunReporter:
    """
    Emits the per-run summary to the log, and optionally a CSV of failed files.
    Reporting is best effort: it never raises.
    """
    def __init__(self, failure_csv: Optional[Path] = None):
        self.failure_csv = failure_csv

    def report(self, result: RunResult):
        prefix = config.LOG_PREFIX
        logging.info(f"{prefix} Number files successfully processed: {result.successcount}")
        logging.info(f"{prefix} Number files with process failures: {result.failcount}")
        for failed in result.failures:
            logging.info(f"{prefix} Failed to process file with hash: {failed.pathnamehash}")

        if self.failure_csv and result.failures:
            self._write_failure_csv(result)

    def _write_failure_csv(self, result: RunResult):
        headers = ["Pathname Hash", "Content Hash", "Reason"]
        try:
            with open(self.failure_csv, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(headers)
                for failed in result.failures:
                    writer.writerow([failed.pathnamehash, failed.contenthash, failed.reason])
        except (OSError, csv.Error) as e:
            logging.warning(f"Could not write failure report to {self.failure_csv}: {e}")
            return
        logging.info(f"Failure report written: {self.failure_csv}")
