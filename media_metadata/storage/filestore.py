"""
Content-addressed file store.

Blobs live on disk under <root>/<h[0:2]>/<h[2:4]>/<contenthash>; the `files`
table maps logical locations (pathnamehash) onto them. Identical uploads in
different places share one blob.
"""
import hashlib
import logging
import mimetypes
import shutil
import time
from pathlib import Path
from typing import Optional

from .. import config
from ..database.ops import DBOperations
from ..exceptions import DatabaseError, FileResolutionError
from ..models import StoredFile


def compute_contenthash(path: Path) -> str:
    """SHA-1 of the file bytes, read in chunks."""
    h = hashlib.sha1()
    with open(path, 'rb') as f:
        while chunk := f.read(config.HASH_CHUNK_SIZE):
            h.update(chunk)
    return h.hexdigest()


def compute_pathnamehash(component: str, filearea: str, itemid: int, filepath: str, filename: str) -> str:
    """SHA-1 of the logical location /component/filearea/itemid/filepath/filename."""
    if not filepath.startswith('/'):
        filepath = '/' + filepath
    if not filepath.endswith('/'):
        filepath = filepath + '/'
    return hashlib.sha1(f"/{component}/{filearea}/{itemid}{filepath}{filename}".encode('utf-8')).hexdigest()


class FileStore:
    def __init__(self, root: Path, db_ops: DBOperations):
        self.root = Path(root)
        self.db = db_ops

    def blob_path(self, contenthash: str) -> Path:
        return self.root / contenthash[0:2] / contenthash[2:4] / contenthash

    def add_file(self,
                 source: Path,
                 component: str,
                 filearea: str,
                 filename: str,
                 mimetype: Optional[str] = None,
                 itemid: int = 0,
                 filepath: str = '/',
                 timecreated: Optional[int] = None) -> StoredFile:
        """
        Copies `source` into the store (once per distinct content) and indexes it.
        """
        source = Path(source)
        contenthash = compute_contenthash(source)
        pathnamehash = compute_pathnamehash(component, filearea, itemid, filepath, filename)

        if mimetype is None:
            mimetype, _ = mimetypes.guess_type(filename)
        if timecreated is None:
            timecreated = int(time.time())

        previous = self.db.get_file_row(pathnamehash)

        blob = self.blob_path(contenthash)
        copied = False
        if not blob.exists():
            blob.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(str(source), str(blob))
            copied = True
            logging.debug(f"Stored new blob {contenthash} from {source}")

        filesize = blob.stat().st_size
        try:
            self.db.upsert_file(
                contenthash=contenthash,
                pathnamehash=pathnamehash,
                component=component,
                filearea=filearea,
                filename=filename,
                mimetype=mimetype,
                filesize=filesize,
                timecreated=timecreated,
                itemid=itemid,
                filepath=filepath,
            )
        except DatabaseError:
            if copied:
                blob.unlink(missing_ok=True)
            raise

        # Same location, new bytes: the old blob may now be unreferenced
        if previous is not None and previous[0] != contenthash:
            self._remove_blob_if_unreferenced(previous[0])

        return StoredFile(
            contenthash=contenthash,
            pathnamehash=pathnamehash,
            component=component,
            filearea=filearea,
            filename=filename,
            mimetype=mimetype,
            filesize=filesize,
            timecreated=timecreated,
            path=blob,
        )

    def get_file_by_hash(self, pathnamehash: str) -> StoredFile:
        """
        Resolves a pathnamehash to its index row and blob.
        Raises FileResolutionError if either is missing.
        """
        row = self.db.get_file_row(pathnamehash)
        if row is None:
            raise FileResolutionError(f"No file indexed with pathnamehash {pathnamehash}")

        contenthash, pathnamehash, component, filearea, filename, mimetype, filesize, timecreated = row
        blob = self.blob_path(contenthash)
        if not blob.is_file():
            raise FileResolutionError(f"Content {contenthash} for {pathnamehash} is missing from {self.root}")

        return StoredFile(
            contenthash=contenthash,
            pathnamehash=pathnamehash,
            component=component,
            filearea=filearea,
            filename=filename,
            mimetype=mimetype,
            filesize=filesize,
            timecreated=timecreated,
            path=blob,
        )

    def delete_file(self, pathnamehash: str) -> bool:
        """
        Removes a file from the index. The blob goes too once nothing references it.
        Returns False if the file was not indexed.
        """
        contenthash = self.db.delete_file_row(pathnamehash)
        if contenthash is None:
            return False

        self._remove_blob_if_unreferenced(contenthash)
        return True

    def _remove_blob_if_unreferenced(self, contenthash: str):
        if self.db.count_files_with_contenthash(contenthash) == 0:
            self.blob_path(contenthash).unlink(missing_ok=True)
            logging.debug(f"Removed unreferenced blob {contenthash}")
