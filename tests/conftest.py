import pytest
import sqlite3
from media_metadata.database.schema import init_schema
from media_metadata.database.ops import DBOperations
from media_metadata.models import ProbeSuccess
from media_metadata.probing.prober import Prober
from media_metadata.storage.filestore import FileStore


def video_payload(width=1280, height=720, duration=12.5, bitrate=2_000_000, size=3_125_000):
    return {
        'duration': duration,
        'bitrate': bitrate,
        'size': size,
        'formatname': 'mov,mp4,m4a,3gp,3g2,mj2',
        'totalstreams': 2,
        'totalvideostreams': 1,
        'totalaudiostreams': 1,
        'videostreams': [{'codecname': 'h264', 'width': width, 'height': height, 'framerate': 29.97}],
        'audiostreams': [{'codecname': 'aac', 'channels': 2, 'samplerate': 48000}],
    }


def audio_payload(duration=180.0, bitrate=128_000, size=2_880_000):
    return {
        'duration': duration,
        'bitrate': bitrate,
        'size': size,
        'formatname': 'mp3',
        'totalstreams': 1,
        'totalvideostreams': 0,
        'totalaudiostreams': 1,
        'videostreams': [],
        'audiostreams': [{'codecname': 'mp3', 'channels': 2, 'samplerate': 44100}],
    }


class FakeProber(Prober):
    """Returns scripted results keyed by contenthash; a video payload otherwise."""
    name = "fake"

    def __init__(self):
        self.results = {}
        self.calls = []

    def probe(self, stored_file):
        self.calls.append(stored_file.pathnamehash)
        return self.results.get(stored_file.contenthash, ProbeSuccess(payload=video_payload()))


@pytest.fixture
def conn():
    """Returns an in-memory SQLite connection with the schema initialized."""
    c = sqlite3.connect(":memory:")
    init_schema(c)
    try:
        yield c
    finally:
        c.close()

@pytest.fixture
def db_ops(conn):
    """Returns a DBOperations instance attached to the in-memory DB."""
    return DBOperations(conn)

@pytest.fixture
def file_store(db_ops, tmp_path):
    return FileStore(tmp_path / "filedir", db_ops)

@pytest.fixture
def fake_prober():
    return FakeProber()

@pytest.fixture
def add_media(file_store, tmp_path):
    """Writes `content` to a source file and adds it to the store."""
    def _add(content: bytes, filename: str = "clip.mp4", component: str = "mod_resource",
             filearea: str = "content", mimetype: str = "video/mp4", itemid: int = 0,
             timecreated: int = 1_600_000_000):
        src = tmp_path / "src" / f"{itemid}-{filename}"
        src.parent.mkdir(parents=True, exist_ok=True)
        src.write_bytes(content)
        return file_store.add_file(
            src, component=component, filearea=filearea, filename=filename,
            mimetype=mimetype, itemid=itemid, timecreated=timecreated,
        )
    return _add

@pytest.fixture
def index_file(db_ops, file_store):
    """Indexes a file under a fixed contenthash, with a placeholder blob on disk."""
    def _index(contenthash: str, pathnamehash: str, mimetype: str = "video/mp4",
               component: str = "mod_resource", filearea: str = "content",
               filename: str = "clip.mp4", timecreated: int = 1_600_000_000):
        blob = file_store.blob_path(contenthash)
        blob.parent.mkdir(parents=True, exist_ok=True)
        blob.write_bytes(b"media bytes")
        db_ops.upsert_file(
            contenthash=contenthash, pathnamehash=pathnamehash, component=component,
            filearea=filearea, filename=filename, mimetype=mimetype,
            filesize=11, timecreated=timecreated,
        )
    return _index
