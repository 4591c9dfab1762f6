"""
Transcription and speaker attribution data models
"""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class TranscriptSegment:
    """A time-aligned piece of one provider response"""
    start: float   # seconds
    end: float     # seconds
    text: str


@dataclass
class TranscriptResult:
    """One provider response"""
    language: Optional[str]
    full_text: str
    segments: List[TranscriptSegment] = field(default_factory=list)


@dataclass
class SegmentTranscript:
    """Transcript of one AudioSegment, or its placeholder when the call failed"""
    index: int
    text: str
    segments: List[TranscriptSegment] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class SegmentSpan:
    """Where one segment's text sits inside the assembled transcript"""
    index: int
    start: int
    end: int


@dataclass
class AssembledTranscript:
    text: str
    spans: List[SegmentSpan] = field(default_factory=list)
    failed_indices: List[int] = field(default_factory=list)


@dataclass
class Utterance:
    """A sentence-level unit of the transcript"""
    text: str
    speaker: Optional[str] = None   # label, None until attributed
    source: Optional[str] = None    # layer that assigned it: pattern / context / balance / llm


@dataclass
class AttributionOutcome:
    """Result of the speaker attribution engine"""
    organized_text: str
    utterances: List[Utterance] = field(default_factory=list)
    method: str = "none"            # llm / llm+heuristic / heuristic / none
    diarized: bool = False
