"""
Configuration constants for the media metadata sync task.
"""
from pathlib import Path
from typing import List, Union

# --- Batch Limits ---
# Max files to pull from the file index per run. A large backlog is drained
# over several runs rather than in one long one.
MAX_FILES = 5000

# SQLite caps bound parameters per statement; bulk deletes are chunked below it.
DELETE_CHUNK_SIZE = 500

# --- Supported Media ---
SUPPORTED_MIME_TYPES = [
    'audio/aac',
    'audio/au',
    'audio/mp3',
    'audio/mp4',
    'audio/ogg',
    'audio/wav',
    'audio/x-aiff',
    'audio/x-mpegurl',
    'audio/x-ms-wma',
    'audio/x-pn-realaudio-plugin',
    'audio/x-matroska',
    'video/mp4',
    'video/mpeg',
    'video/ogg',
    'video/quicktime',
    'video/webm',
    'video/x-dv',
    'video/x-flv',
    'video/x-ms-asf',
    'video/x-ms-wm',
    'video/x-ms-wmv',
    'video/x-matroska',
    'video/x-matroska-3d',
    'video/MP2T',
    'video/x-sgi-movie',
    # Registered names for the same formats, as mimetypes.guess_type reports them
    'audio/basic',
    'audio/mpeg',
    'audio/x-wav',
    'audio/vnd.wave',
    'audio/x-aac',
    'audio/flac',
    'audio/x-flac',
    'video/x-msvideo',
    'video/3gpp',
]

# --- Transient Files ---
# Files matching any of these markers are never candidates.
EXCLUDED_COMPONENT = 'media_metadata'
EXCLUDED_FILEAREA = 'draft'
DIRECTORY_FILENAME = '.'

# --- Storage ---
FILES_TABLE = 'files'
METADATA_TABLE = 'media_metadata'
HASH_CHUNK_SIZE = 64 * 1024  # 64 KB chunks for reading

DEFAULT_DB_PATH = Path("media_metadata.db")
DEFAULT_FILEDIR = Path("filedir")

# --- Probing ---
DEFAULT_PROBER = 'ffprobe'
FFPROBE_BINARY = 'ffprobe'

TASK_NAME = "Extract media file metadata"
LOG_PREFIX = "media_metadata:"


def get_supported_mime_types(as_string: bool = False) -> Union[List[str], str]:
    """
    Returns the MIME types that support metadata extraction.

    With as_string=True the list is rendered as a quoted, comma separated
    literal ('audio/aac','audio/au',...) for display or ad-hoc SQL.
    Queries issued by this package bind the list as parameters instead.
    """
    if as_string:
        return "'" + "','".join(SUPPORTED_MIME_TYPES) + "'"
    return list(SUPPORTED_MIME_TYPES)
