import json
import sqlite3
import pytest

import metadata_query as mq
from media_metadata.database.schema import init_schema
from media_metadata.database.ops import DBOperations
from media_metadata.models import MetadataRecord


@pytest.fixture
def conn(tmp_path):
    db_path = tmp_path / "db.sqlite"
    c = sqlite3.connect(db_path)
    init_schema(c)
    try:
        yield c
    finally:
        c.close()

@pytest.fixture
def db_ops(conn):
    return DBOperations(conn)

def _index(db_ops, contenthash, pathnamehash, mimetype="video/mp4"):
    db_ops.upsert_file(
        contenthash=contenthash, pathnamehash=pathnamehash, component="mod_resource",
        filearea="content", filename="clip.mp4", mimetype=mimetype, filesize=1, timecreated=1,
    )


def test_connect_db_missing(tmp_path):
    with pytest.raises(SystemExit):
        mq.connect_db(tmp_path / "none.db")


def test_connect_db_is_read_only(tmp_path, conn):
    ro = mq.connect_db(tmp_path / "db.sqlite")
    try:
        assert ro.execute("SELECT COUNT(*) FROM files").fetchone() == (0,)
        with pytest.raises(sqlite3.OperationalError):
            ro.execute("DELETE FROM media_metadata")
    finally:
        ro.close()


def test_connect_db_without_schema(tmp_path):
    db_path = tmp_path / "empty.sqlite"
    other = sqlite3.connect(db_path)
    other.execute("CREATE TABLE notes (body TEXT)")
    other.commit()
    other.close()
    with pytest.raises(SystemExit):
        mq.connect_db(db_path)


def test_connect_db_not_a_database(tmp_path):
    db_path = tmp_path / "notes.txt"
    db_path.write_text("this is not sqlite " * 100)
    with pytest.raises(SystemExit):
        mq.connect_db(db_path)


def test_summary_counts(db_ops, capsys):
    _index(db_ops, "c-done", "p-done")
    _index(db_ops, "c-todo", "p-todo")
    _index(db_ops, "c-pdf", "p-pdf", mimetype="application/pdf")
    db_ops.insert_metadata_records([
        MetadataRecord(contenthash="c-done", pathnamehash="p-done", timecreated=1),
        MetadataRecord(contenthash="c-gone", pathnamehash="p-gone", timecreated=1),
    ])

    mq.show_summary(db_ops)
    out = capsys.readouterr().out

    assert "indexed files:     3" in out
    assert "metadata records:  2" in out
    assert "pending files:     1" in out
    assert "orphaned records:  1" in out


def test_pending_and_orphans_listing(db_ops, capsys):
    _index(db_ops, "c-todo", "p-todo")
    mq.list_pending(db_ops, limit=10)
    mq.list_orphans(db_ops)
    out = capsys.readouterr().out

    assert "c-todo" in out and "p-todo" in out
    assert "No orphaned metadata records found." in out


def test_show_record(db_ops, capsys):
    payload = {"duration": 3.5, "totalvideostreams": 0}
    db_ops.insert_metadata_records([
        MetadataRecord(contenthash="c1", pathnamehash="p1", timecreated=7, duration=3.5,
                       audiostreams=1, metadata=json.dumps(payload)),
    ])

    mq.show_record(db_ops, "c1")
    mq.show_record(db_ops, "missing")
    out = capsys.readouterr().out

    assert "pathnamehash:  p1" in out
    assert "0 video, 1 audio" in out
    assert '"duration": 3.5' in out
    assert "No metadata for contenthash=missing" in out
