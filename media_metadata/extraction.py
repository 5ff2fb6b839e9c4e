import json
import logging
from typing import Any, Dict, List, Sequence, Set

from tqdm import tqdm

from .database.ops import DBOperations
from .models import (
    CandidateRef, FailureEntry, MetadataRecord, ProbeFailure, ProbeSuccess, RunResult,
)
from .probing.prober import Prober
from .storage.filestore import FileStore


class ExtractionPipeline:
    """
    Probes each candidate once per distinct content and stores the results.

    Per-file probe failures are collected and the run carries on. Anything
    else (a candidate that cannot be resolved, a failed insert, a prober that
    cannot start) propagates and ends the run.
    """
    def __init__(self, db_ops: DBOperations, file_store: FileStore, prober: Prober,
                 show_progress: bool = False):
        self.db = db_ops
        self.file_store = file_store
        self.prober = prober
        self.show_progress = show_progress

    def process(self, candidates: Sequence[CandidateRef]) -> RunResult:
        result = RunResult()
        seen: Set[str] = set()
        pending: List[MetadataRecord] = []

        for candidate in tqdm(candidates, desc="Extracting", disable=not self.show_progress):
            # Many pathnames can share one content; probe each content once.
            if candidate.contenthash in seen:
                continue
            seen.add(candidate.contenthash)

            stored = self.file_store.get_file_by_hash(candidate.pathnamehash)
            probed = self.prober.probe(stored)

            if isinstance(probed, ProbeSuccess):
                pending.append(build_metadata_record(candidate, stored.contenthash, probed.payload))
                result.successcount += 1
            elif isinstance(probed, ProbeFailure):
                result.failures.append(FailureEntry(
                    pathnamehash=candidate.pathnamehash,
                    contenthash=candidate.contenthash,
                    reason=probed.reason,
                ))
                result.failcount += 1
            else:
                raise TypeError(f"Unexpected probe result: {probed!r}")

        self.db.insert_metadata_records(pending)
        logging.debug(f"Processed {len(seen)} distinct files from {len(candidates)} candidates.")
        return result


def build_metadata_record(candidate: CandidateRef, contenthash: str, payload: Dict[str, Any]) -> MetadataRecord:
    """Maps a probe payload onto a metadata row."""
    record = MetadataRecord(
        contenthash=contenthash,
        pathnamehash=candidate.pathnamehash,
        timecreated=candidate.timecreated,
        duration=float(payload.get('duration') or 0),
        bitrate=int(payload.get('bitrate') or 0),
        size=int(payload.get('size') or 0),
        videostreams=int(payload.get('totalvideostreams') or 0),
        audiostreams=int(payload.get('totalaudiostreams') or 0),
        metadata=json.dumps(payload),
    )

    # Dimensions come from the primary video stream, if there is one
    videostreams = payload.get('videostreams') or []
    if record.videostreams > 0 and videostreams:
        record.width = int(videostreams[0].get('width') or 0)
        record.height = int(videostreams[0].get('height') or 0)

    return record
