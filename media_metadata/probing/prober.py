import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

from pymediainfo import MediaInfo

from .. import config
from ..exceptions import ConfigurationError, ProbeError, ProberUnavailableError
from ..models import ProbeFailure, ProbeResult, ProbeSuccess, StoredFile


class Prober:
    """
    Inspects a stored media file and reports container/stream metadata.

    Subclasses implement `_probe_path`, returning the normalized payload or
    raising ProbeError. A ProbeError becomes a ProbeFailure for that file;
    ProberUnavailableError is left to propagate since no file can succeed.

    Payload keys:
        duration, bitrate, size, formatname, totalstreams,
        totalvideostreams, totalaudiostreams,
        videostreams: [{codecname, width, height, framerate}, ...],
        audiostreams: [{codecname, channels, samplerate}, ...]
    """
    name = "prober"

    def probe(self, stored_file: StoredFile) -> ProbeResult:
        try:
            payload = self._probe_path(stored_file.path)
        except ProbeError as e:
            logging.warning(f"{self.name} failed for {stored_file.pathnamehash} ({stored_file.filename}): {e}")
            return ProbeFailure(reason=str(e))

        if not payload.get('size'):
            payload['size'] = stored_file.filesize
        return ProbeSuccess(payload=payload)

    def _probe_path(self, path: Path) -> Dict[str, Any]:
        raise NotImplementedError


class FFProbeProber(Prober):
    """
    Wraps the 'ffprobe' command line utility.
    Must be installed and on the system PATH, or given as `binary`.
    """
    name = "ffprobe"

    def __init__(self, binary: str = config.FFPROBE_BINARY, timeout: Optional[float] = None):
        self.binary = binary
        self.timeout = timeout

    def _probe_path(self, path: Path) -> Dict[str, Any]:
        cmd = [
            self.binary,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise ProberUnavailableError(f"ffprobe not found: {self.binary}") from e
        except PermissionError as e:
            raise ProberUnavailableError(f"ffprobe is not executable: {self.binary}") from e
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"ffprobe timed out after {self.timeout}s") from e
        except subprocess.CalledProcessError as e:
            raise ProbeError(f"ffprobe exited with status {e.returncode}") from e

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ProbeError(f"ffprobe returned invalid JSON: {e}") from e

        return parse_ffprobe_output(data)


def parse_ffprobe_output(data: Dict[str, Any]) -> Dict[str, Any]:
    """Normalizes `ffprobe -show_format -show_streams` JSON into the payload shape."""
    fmt = data.get('format')
    if not fmt:
        raise ProbeError("ffprobe reported no container format")

    video: List[Dict[str, Any]] = []
    audio: List[Dict[str, Any]] = []
    for stream in data.get('streams', []):
        codec_type = stream.get('codec_type')
        if codec_type == 'video':
            # Embedded cover art shows up as a one-frame video stream
            if stream.get('disposition', {}).get('attached_pic'):
                continue
            video.append({
                'codecname': stream.get('codec_name', ''),
                'width': _to_int(stream.get('width')),
                'height': _to_int(stream.get('height')),
                'framerate': _parse_rate(stream.get('avg_frame_rate') or stream.get('r_frame_rate')),
            })
        elif codec_type == 'audio':
            audio.append({
                'codecname': stream.get('codec_name', ''),
                'channels': _to_int(stream.get('channels')),
                'samplerate': _to_int(stream.get('sample_rate')),
            })

    return {
        'duration': _to_float(fmt.get('duration')),
        'bitrate': _to_int(fmt.get('bit_rate')),
        'size': _to_int(fmt.get('size')),
        'formatname': fmt.get('format_name', ''),
        'totalstreams': _to_int(fmt.get('nb_streams')) or len(data.get('streams', [])),
        'totalvideostreams': len(video),
        'totalaudiostreams': len(audio),
        'videostreams': video,
        'audiostreams': audio,
    }


class MediaInfoProber(Prober):
    """
    Parses media with 'pymediainfo'. Needs the libmediainfo shared library.
    """
    name = "mediainfo"

    def _probe_path(self, path: Path) -> Dict[str, Any]:
        if not MediaInfo.can_parse():
            raise ProberUnavailableError("libmediainfo is not available to pymediainfo")

        try:
            mi = MediaInfo.parse(str(path))
        except Exception as e:
            raise ProbeError(f"MediaInfo could not parse file: {e}") from e

        general = None
        video: List[Dict[str, Any]] = []
        audio: List[Dict[str, Any]] = []
        for track in mi.tracks:
            if track.track_type == "General":
                general = track
            elif track.track_type == "Video":
                video.append({
                    'codecname': (getattr(track, "format", None) or '').lower(),
                    'width': _to_int(getattr(track, "width", None)),
                    'height': _to_int(getattr(track, "height", None)),
                    'framerate': _to_float(getattr(track, "frame_rate", None)),
                })
            elif track.track_type == "Audio":
                audio.append({
                    'codecname': (getattr(track, "format", None) or '').lower(),
                    'channels': _to_int(getattr(track, "channel_s", None)),
                    'samplerate': _to_int(getattr(track, "sampling_rate", None)),
                })

        if general is None:
            raise ProbeError("MediaInfo reported no General track")
        if not video and not audio:
            raise ProbeError("MediaInfo found no audio or video streams")

        # MediaInfo duration is in milliseconds
        return {
            'duration': _to_float(getattr(general, "duration", None)) / 1000.0,
            'bitrate': _to_int(getattr(general, "overall_bit_rate", None)),
            'size': _to_int(getattr(general, "file_size", None)),
            'formatname': (getattr(general, "format", None) or '').lower(),
            'totalstreams': len(video) + len(audio),
            'totalvideostreams': len(video),
            'totalaudiostreams': len(audio),
            'videostreams': video,
            'audiostreams': audio,
        }


PROBERS = {
    FFProbeProber.name: FFProbeProber,
    MediaInfoProber.name: MediaInfoProber,
}


def get_prober(name: str = config.DEFAULT_PROBER, **options) -> Prober:
    """Builds a prober by name ('ffprobe' or 'mediainfo')."""
    try:
        cls = PROBERS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown prober '{name}'. Choose from: {', '.join(sorted(PROBERS))}")
    return cls(**options)


# --- Value Helpers ---

def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _parse_rate(value: Optional[str]) -> float:
    """ffprobe frame rates look like '30000/1001' or '25/1'."""
    if not value:
        return 0.0
    try:
        num, den = str(value).split("/")
        if float(den) == 0:
            return 0.0
        return round(float(num) / float(den), 3)
    except ValueError:
        return _to_float(value)
