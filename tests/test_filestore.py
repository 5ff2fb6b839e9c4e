import hashlib
import pytest
from media_metadata.exceptions import DatabaseError, FileResolutionError
from media_metadata.storage.filestore import compute_contenthash, compute_pathnamehash


def test_compute_contenthash_is_sha1_of_bytes(tmp_path):
    p = tmp_path / "sample.bin"
    data = b"hello world" * 10_000
    p.write_bytes(data)
    assert compute_contenthash(p) == hashlib.sha1(data).hexdigest()

def test_pathnamehash_normalizes_filepath():
    a = compute_pathnamehash("mod_resource", "content", 3, "/videos/", "a.mp4")
    b = compute_pathnamehash("mod_resource", "content", 3, "videos", "a.mp4")
    assert a == b
    assert a != compute_pathnamehash("mod_resource", "content", 4, "/videos/", "a.mp4")

def test_add_file_shares_blob_between_locations(add_media, file_store, db_ops):
    first = add_media(b"same bytes", filename="a.mp4", itemid=1)
    second = add_media(b"same bytes", filename="b.mp4", itemid=2)

    assert first.contenthash == second.contenthash
    assert first.pathnamehash != second.pathnamehash
    assert first.path == second.path
    assert first.path.read_bytes() == b"same bytes"
    assert db_ops.count_files_with_contenthash(first.contenthash) == 2

def test_add_file_guesses_mimetype(file_store, tmp_path):
    src = tmp_path / "movie.mp4"
    src.write_bytes(b"x")
    stored = file_store.add_file(src, component="mod_folder", filearea="content", filename="movie.mp4")
    assert stored.mimetype == "video/mp4"

def test_get_file_by_hash_resolves_row_and_blob(add_media, file_store):
    added = add_media(b"abc", filename="song.mp3", mimetype="audio/mp3", timecreated=42)
    stored = file_store.get_file_by_hash(added.pathnamehash)
    assert stored == added
    assert stored.timecreated == 42
    assert stored.filesize == 3

def test_get_file_by_hash_unknown_pathnamehash(file_store):
    with pytest.raises(FileResolutionError):
        file_store.get_file_by_hash("0" * 40)

def test_get_file_by_hash_missing_blob(add_media, file_store):
    added = add_media(b"gone")
    added.path.unlink()
    with pytest.raises(FileResolutionError):
        file_store.get_file_by_hash(added.pathnamehash)

def test_delete_file_keeps_blob_until_last_reference(add_media, file_store):
    first = add_media(b"shared", filename="a.mp4", itemid=1)
    second = add_media(b"shared", filename="b.mp4", itemid=2)

    assert file_store.delete_file(first.pathnamehash)
    assert second.path.exists()

    assert file_store.delete_file(second.pathnamehash)
    assert not second.path.exists()

    assert not file_store.delete_file(second.pathnamehash)

def test_replacing_content_removes_old_blob(add_media, db_ops):
    old = add_media(b"v1", filename="a.mp4")
    new = add_media(b"v2", filename="a.mp4")

    assert old.pathnamehash == new.pathnamehash
    assert db_ops.count_files_with_contenthash(old.contenthash) == 0
    assert not old.path.exists()
    assert new.path.read_bytes() == b"v2"

def test_replacing_content_keeps_shared_old_blob(add_media):
    old = add_media(b"v1", filename="a.mp4", itemid=1)
    add_media(b"v1", filename="b.mp4", itemid=2)
    add_media(b"v2", filename="a.mp4", itemid=1)

    assert old.path.exists()

def test_failed_index_write_leaves_no_blob(file_store, db_ops, tmp_path, monkeypatch):
    def broken_upsert(**kwargs):
        raise DatabaseError("disk full")
    monkeypatch.setattr(db_ops, "upsert_file", broken_upsert)
    src = tmp_path / "clip.mp4"
    src.write_bytes(b"new bytes")

    with pytest.raises(DatabaseError):
        file_store.add_file(src, component="mod_resource", filearea="content", filename="clip.mp4")
    assert not file_store.blob_path(hashlib.sha1(b"new bytes").hexdigest()).exists()
