"""
Database schema definitions.
"""
import sqlite3
import logging

CURRENT_SCHEMA_VERSION = 1

def init_schema(conn: sqlite3.Connection):
    """
    Applies the core schema to the database.
    Idempotent: safe to run on every startup.
    """
    with conn:
        # 1. Version Tracking (For future migrations)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );
        """)

        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # 2. File Index (owned by the file store)
        # One row per logical file; many rows may share a contenthash.
        conn.execute("""
        CREATE TABLE IF NOT EXISTS files (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            contenthash     TEXT NOT NULL,        -- SHA-1 of the bytes
            pathnamehash    TEXT NOT NULL UNIQUE, -- SHA-1 of the logical location
            component       TEXT NOT NULL,
            filearea        TEXT NOT NULL,
            itemid          INTEGER NOT NULL DEFAULT 0,
            filepath        TEXT NOT NULL DEFAULT '/',
            filename        TEXT NOT NULL,
            mimetype        TEXT,
            filesize        INTEGER NOT NULL DEFAULT 0,
            timecreated     INTEGER NOT NULL
        );
        """)

        # 3. Extracted Metadata (owned by the sync task)
        # No foreign key: rows outlive their files until the cleanup stage runs.
        conn.execute("""
        CREATE TABLE IF NOT EXISTS media_metadata (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            contenthash     TEXT NOT NULL UNIQUE,
            pathnamehash    TEXT NOT NULL,
            duration        REAL NOT NULL DEFAULT 0,
            bitrate         INTEGER NOT NULL DEFAULT 0,
            size            INTEGER NOT NULL DEFAULT 0,
            videostreams    INTEGER NOT NULL DEFAULT 0,
            audiostreams    INTEGER NOT NULL DEFAULT 0,
            width           INTEGER NOT NULL DEFAULT 0,
            height          INTEGER NOT NULL DEFAULT 0,
            metadata        TEXT NOT NULL DEFAULT '{}',
            timecreated     INTEGER NOT NULL
        );
        """)

        # 4. Indices for Performance
        conn.execute("CREATE INDEX IF NOT EXISTS idx_files_contenthash ON files(contenthash);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_files_mimetype ON files(mimetype);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_media_metadata_pathnamehash ON media_metadata(pathnamehash);")

    logging.debug("Database schema initialized.")
