"""
Upload job data models
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from case_transcriber.models.audio import AudioSegment


class JobStage(str, Enum):
    RECEIVED = "received"
    EXTRACTING = "extracting"
    SEGMENTING = "segmenting"
    TRANSCRIBING = "transcribing"
    ASSEMBLING = "assembling"
    ATTRIBUTING = "attributing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class UploadJob:
    """One run of the pipeline. Owned by TranscriptionService."""
    job_id: str
    workspace: Path                          # exclusive per-job directory
    video_path: Path                         # uploaded video inside the workspace
    original_filename: str
    api_key: str                             # provider credential snapshot
    max_chunk_bytes: int
    segment_seconds: int
    audio_path: Optional[Path] = None
    segments: List[AudioSegment] = field(default_factory=list)
    stage: JobStage = JobStage.RECEIVED
    error: Optional[str] = None

    @property
    def segment_dir(self) -> Path:
        return self.workspace / "segments"


@dataclass(frozen=True)
class JobStats:
    original_size: int
    audio_size: int
    chunks: int
    failed_chunks: int
    transcription_length: int
    organized_length: int
    diarization: bool
    method: str


@dataclass(frozen=True)
class TranscriptionResult:
    """Final pipeline output. Never persisted."""
    transcription: str
    organized_transcription: str
    stats: JobStats
