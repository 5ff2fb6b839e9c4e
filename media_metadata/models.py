from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


@dataclass(frozen=True)
class StoredFile:
    """
    A file resolved from the file store: index row plus the blob on disk.
    """
    contenthash: str
    pathnamehash: str
    component: str
    filearea: str
    filename: str
    mimetype: Optional[str]
    filesize: int
    timecreated: int
    path: Path              # Blob location, shared by every file with this contenthash


@dataclass(frozen=True)
class CandidateRef:
    """A file that has no metadata row yet."""
    contenthash: str
    pathnamehash: str
    timecreated: int


@dataclass
class MetadataRecord:
    """
    One row of the media_metadata table (one per distinct contenthash).
    """
    contenthash: str
    pathnamehash: str
    timecreated: int
    duration: float = 0.0
    bitrate: int = 0
    size: int = 0
    videostreams: int = 0
    audiostreams: int = 0
    width: int = 0
    height: int = 0
    metadata: str = '{}'     # JSON of the full probe payload


@dataclass(frozen=True)
class ProbeSuccess:
    payload: Dict[str, Any]


@dataclass(frozen=True)
class ProbeFailure:
    reason: str = ""


ProbeResult = Union[ProbeSuccess, ProbeFailure]


@dataclass(frozen=True)
class FailureEntry:
    pathnamehash: str
    contenthash: str
    reason: str = ""


@dataclass
class RunResult:
    successcount: int = 0
    failcount: int = 0
    failures: List[FailureEntry] = field(default_factory=list)

    @property
    def failedhashes(self) -> List[str]:
        """Pathname hashes of the files that failed to probe, in run order."""
        return [f.pathnamehash for f in self.failures]
