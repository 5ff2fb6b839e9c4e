"""
Custom exception hierarchy for the media metadata sync task.

Everything except ProbeError is fatal for a run: it propagates out of
MetadataSyncTask.execute() so the scheduler can mark the run failed and
try again later.
"""


class MediaMetadataError(Exception):
    """Base exception for all media metadata errors."""
    pass


class ProbeError(MediaMetadataError):
    """Raised inside a prober when a single file cannot be inspected."""
    pass


class ProberUnavailableError(MediaMetadataError):
    """Raised when the probing tool cannot be started at all."""
    pass


class FileResolutionError(MediaMetadataError):
    """Raised when a file selected from the index cannot be retrieved."""
    pass


class DatabaseError(MediaMetadataError):
    """Raised when database operations fail."""
    pass


class ConfigurationError(MediaMetadataError):
    """Raised when the task is configured with invalid values."""
    pass
