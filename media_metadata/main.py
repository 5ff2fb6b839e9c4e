import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import config
from .core import MetadataSyncTask
from .database.db import DBManager
from .database.ops import DBOperations
from .probing.prober import PROBERS, get_prober
from .reporting import RunReporter
from .storage.filestore import FileStore

def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Logs to stdout, and to a file as well if one is given."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )

    # Silence chatty libraries
    logging.getLogger("pymediainfo").setLevel(logging.WARNING)
    logging.getLogger("tqdm").setLevel(logging.WARNING)

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Media Metadata Sync: extract metadata for new media files and prune stale rows")

    p.add_argument("--db", type=Path, default=config.DEFAULT_DB_PATH, help="Path to the SQLite database")
    p.add_argument("--filedir", type=Path, default=config.DEFAULT_FILEDIR, help="Root of the content-addressed file store")

    p.add_argument("--prober", choices=sorted(PROBERS), default=config.DEFAULT_PROBER, help="Metadata probing backend")
    p.add_argument("--ffprobe", default=config.FFPROBE_BINARY, help="Path to the ffprobe binary")
    p.add_argument("--probe-timeout", type=float, default=None, help="Seconds before a single ffprobe call is abandoned")
    p.add_argument("--max-files", type=int, default=config.MAX_FILES, help="Max files to process per run")

    p.add_argument("--failure-report", type=Path, default=None, help="Write failed files to this CSV")
    p.add_argument("--progress", action="store_true", help="Show a progress bar while extracting")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")

    return p.parse_args(argv)

def build_prober(args):
    if args.prober == "ffprobe":
        return get_prober("ffprobe", binary=args.ffprobe, timeout=args.probe_timeout)
    return get_prober(args.prober)

def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    logging.info("=== Media Metadata Sync Started ===")
    logging.info(f"Database: {args.db}")
    logging.info(f"Filedir:  {args.filedir}")

    try:
        with DBManager(args.db) as conn:
            db_ops = DBOperations(conn)
            task = MetadataSyncTask(
                db_ops=db_ops,
                file_store=FileStore(args.filedir, db_ops),
                prober=build_prober(args),
                max_files=args.max_files,
                reporter=RunReporter(args.failure_report),
                show_progress=args.progress,
            )
            task.execute()
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        sys.exit(1)
    except Exception:
        logging.exception("Fatal error during metadata sync.")
        sys.exit(1)

    logging.info("Metadata sync complete.")

if __name__ == "__main__":
    main()
