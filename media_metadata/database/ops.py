import sqlite3
import logging
from typing import Optional, Tuple, List, Iterable, Sequence, Set

from .. import config
from ..exceptions import DatabaseError
from ..models import CandidateRef, MetadataRecord

FileRow = Tuple[str, str, str, str, str, Optional[str], int, int]

METADATA_COLUMNS = (
    "contenthash", "pathnamehash", "duration", "bitrate", "size",
    "videostreams", "audiostreams", "width", "height", "metadata", "timecreated",
)

class DBOperations:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # --- File Index ---

    def upsert_file(self,
                    contenthash: str,
                    pathnamehash: str,
                    component: str,
                    filearea: str,
                    filename: str,
                    mimetype: Optional[str],
                    filesize: int,
                    timecreated: int,
                    itemid: int = 0,
                    filepath: str = '/') -> int:
        """
        Inserts a file index row, or repoints an existing pathnamehash at new content.
        """
        try:
            with self.conn:
                cur = self.conn.cursor()
                cur.execute("SELECT id FROM files WHERE pathnamehash = ?", (pathnamehash,))
                row = cur.fetchone()
                if row is None:
                    cur.execute("""
                        INSERT INTO files (
                            contenthash, pathnamehash, component, filearea, itemid,
                            filepath, filename, mimetype, filesize, timecreated
                        )
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """, (
                        contenthash, pathnamehash, component, filearea, itemid,
                        filepath, filename, mimetype, filesize, timecreated
                    ))
                    if cur.lastrowid is None:
                        raise DatabaseError("Database INSERT failed to return a row ID.")
                    return cur.lastrowid

                file_id = int(row[0])
                cur.execute("""
                    UPDATE files
                    SET contenthash = ?, mimetype = ?, filesize = ?
                    WHERE id = ?
                """, (contenthash, mimetype, filesize, file_id))
                return file_id
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to record file {pathnamehash}: {e}") from e

    def get_file_row(self, pathnamehash: str) -> Optional[FileRow]:
        """Returns (contenthash, pathnamehash, component, filearea, filename, mimetype, filesize, timecreated)."""
        try:
            cur = self.conn.cursor()
            cur.execute("""
                SELECT contenthash, pathnamehash, component, filearea, filename,
                       mimetype, filesize, timecreated
                FROM files
                WHERE pathnamehash = ?
            """, (pathnamehash,))
            return cur.fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to look up file {pathnamehash}: {e}") from e

    def delete_file_row(self, pathnamehash: str) -> Optional[str]:
        """Removes a file index row. Returns its contenthash, or None if it was not indexed."""
        row = self.get_file_row(pathnamehash)
        if row is None:
            return None
        try:
            with self.conn:
                self.conn.execute("DELETE FROM files WHERE pathnamehash = ?", (pathnamehash,))
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to delete file {pathnamehash}: {e}") from e
        return row[0]

    def count_files_with_contenthash(self, contenthash: str) -> int:
        try:
            cur = self.conn.cursor()
            cur.execute("SELECT COUNT(*) FROM files WHERE contenthash = ?", (contenthash,))
            return int(cur.fetchone()[0])
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to count references to {contenthash}: {e}") from e

    # --- Reconciliation Queries ---

    def fetch_candidates(self, mimetypes: Sequence[str], limit: int) -> List[CandidateRef]:
        """
        Files of a supported type with no metadata row yet (left anti-join),
        skipping our own component, draft uploads and directory entries.
        """
        if not mimetypes:
            return []

        placeholders = ", ".join("?" for _ in mimetypes)
        sql = f"""
            SELECT f.contenthash, f.pathnamehash, f.timecreated
            FROM files f
            LEFT JOIN media_metadata m ON f.contenthash = m.contenthash
            WHERE f.mimetype IN ({placeholders})
              AND m.contenthash IS NULL
              AND f.component <> ?
              AND f.filearea <> ?
              AND f.filename <> ?
            ORDER BY f.id
            LIMIT ?
        """
        params = list(mimetypes) + [
            config.EXCLUDED_COMPONENT,
            config.EXCLUDED_FILEAREA,
            config.DIRECTORY_FILENAME,
            limit,
        ]
        try:
            cur = self.conn.cursor()
            cur.execute(sql, params)
            return [CandidateRef(contenthash=r[0], pathnamehash=r[1], timecreated=r[2]) for r in cur.fetchall()]
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to select candidate files: {e}") from e

    def fetch_orphan_hashes(self) -> Set[str]:
        """Content hashes with a metadata row but no file left in the index."""
        try:
            cur = self.conn.cursor()
            cur.execute("""
                SELECT m.contenthash
                FROM media_metadata m
                LEFT JOIN files f ON f.contenthash = m.contenthash
                WHERE f.contenthash IS NULL
            """)
            return {row[0] for row in cur.fetchall()}
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to select orphaned metadata: {e}") from e

    # --- Metadata Rows ---

    def insert_metadata_records(self, records: Iterable[MetadataRecord]) -> int:
        """
        Bulk insert in one transaction. Either every row lands or none do.
        """
        rows = [
            (
                r.contenthash, r.pathnamehash, r.duration, r.bitrate, r.size,
                r.videostreams, r.audiostreams, r.width, r.height, r.metadata, r.timecreated,
            )
            for r in records
        ]
        if not rows:
            return 0

        columns = ", ".join(METADATA_COLUMNS)
        placeholders = ", ".join("?" for _ in METADATA_COLUMNS)
        try:
            with self.conn:
                self.conn.executemany(
                    f"INSERT INTO media_metadata ({columns}) VALUES ({placeholders})",
                    rows,
                )
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to insert {len(rows)} metadata records: {e}") from e

        logging.debug(f"Inserted {len(rows)} metadata records.")
        return len(rows)

    def delete_metadata_records(self, contenthashes: Iterable[str],
                                chunk_size: int = config.DELETE_CHUNK_SIZE) -> int:
        """
        Deletes metadata rows keyed on contenthash, chunked under SQLite's
        bound parameter limit but committed as a single transaction.
        """
        hashes = sorted(set(contenthashes))
        if not hashes:
            return 0

        removed = 0
        try:
            with self.conn:
                for start in range(0, len(hashes), chunk_size):
                    chunk = hashes[start:start + chunk_size]
                    placeholders = ", ".join("?" for _ in chunk)
                    cur = self.conn.execute(
                        f"DELETE FROM media_metadata WHERE contenthash IN ({placeholders})",
                        chunk,
                    )
                    removed += cur.rowcount
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to delete {len(hashes)} metadata records: {e}") from e
        return removed

    def get_metadata_record(self, contenthash: str) -> Optional[MetadataRecord]:
        try:
            cur = self.conn.cursor()
            cur.execute(
                f"SELECT {', '.join(METADATA_COLUMNS)} FROM media_metadata WHERE contenthash = ?",
                (contenthash,),
            )
            row = cur.fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to look up metadata for {contenthash}: {e}") from e

        if row is None:
            return None
        return MetadataRecord(**dict(zip(METADATA_COLUMNS, row)))

    def count_rows(self, table: str) -> int:
        """Row count for one of the two tables this package owns or reads."""
        if table not in (config.FILES_TABLE, config.METADATA_TABLE):
            raise ValueError(f"Unknown table: {table}")
        try:
            cur = self.conn.cursor()
            cur.execute(f"SELECT COUNT(*) FROM {table}")
            return int(cur.fetchone()[0])
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to count rows in {table}: {e}") from e
