"""
Per-segment transcription with a bulkhead policy

A failing segment becomes a placeholder. It never discards the transcripts of
its siblings and never fails the job.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional

from case_transcriber.exceptions import SegmentTranscriptionError
from case_transcriber.models.audio import AudioSegment
from case_transcriber.models.transcript import SegmentTranscript, TranscriptSegment
from case_transcriber.transcribers.base import Transcriber

logger = logging.getLogger(__name__)


def placeholder_text(index: int) -> str:
    return f"[transcription error for segment {index}]"


class SegmentTranscriptionRunner:
    """
    Transcribes segments sequentially (max_workers=1) or with bounded concurrency

    Results always come back ordered by segment index.
    """

    def __init__(self, transcriber: Transcriber, max_workers: int = 1, delete_after_use: bool = True):
        self.transcriber = transcriber
        self.max_workers = max(1, max_workers)
        self.delete_after_use = delete_after_use

    def run(self, segments: List[AudioSegment]) -> List[SegmentTranscript]:
        if not segments:
            return []

        if self.max_workers == 1 or len(segments) == 1:
            results = [self._transcribe_one(segment) for segment in segments]
        else:
            by_index: Dict[int, SegmentTranscript] = {}
            workers = min(self.max_workers, len(segments))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="segment") as pool:
                futures = [pool.submit(self._transcribe_one, segment) for segment in segments]
                for future in as_completed(futures):
                    transcript = future.result()
                    by_index[transcript.index] = transcript
            results = list(by_index.values())

        results.sort(key=lambda t: t.index)
        failed = [t.index for t in results if t.failed]
        logger.info(
            f"[Transcribe] {len(results) - len(failed)}/{len(results)} segments ok"
            + (f", failed: {failed}" if failed else "")
        )
        return results

    def _transcribe_one(self, segment: AudioSegment) -> SegmentTranscript:
        logger.info(f"[Transcribe] segment {segment.index}: {segment.path.name}")
        try:
            result = self.transcriber.transcribe(str(segment.path))
            return SegmentTranscript(
                index=segment.index,
                text=result.full_text.strip(),
                segments=self._shift(result.segments, segment.offset),
            )
        except Exception as e:
            error = SegmentTranscriptionError(segment.index, str(e) or type(e).__name__, cause=e)
            logger.warning(f"[Transcribe] {error}, using placeholder")
            return SegmentTranscript(index=segment.index, text=placeholder_text(segment.index), error=error.message)
        finally:
            if self.delete_after_use and segment.owned:
                self._delete(segment)

    @staticmethod
    def _shift(segments: List[TranscriptSegment], offset: Optional[float]) -> List[TranscriptSegment]:
        if offset is None:
            if segments:
                logger.warning("[Transcribe] segment offset unknown, timestamps stay segment-relative")
            return list(segments)
        if offset == 0:
            return list(segments)
        return [
            TranscriptSegment(start=round(s.start + offset, 2), end=round(s.end + offset, 2), text=s.text)
            for s in segments
        ]

    @staticmethod
    def _delete(segment: AudioSegment):
        try:
            segment.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"[Transcribe] could not delete {segment.path}: {e}")
