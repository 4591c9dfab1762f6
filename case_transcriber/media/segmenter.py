"""
Audio segmentation
Splits audio that exceeds the provider's payload limit into fixed-duration chunks
"""
import logging
import re
import subprocess
from pathlib import Path
from typing import List, Optional

from case_transcriber.exceptions import SegmentationError
from case_transcriber.media.ffmpeg import FFMPEG, probe_duration, stderr_tail
from case_transcriber.models.audio import AudioSegment

logger = logging.getLogger(__name__)


class Segmenter:
    """
    Splits an audio file with ffmpeg's segment muxer (stream copy, no re-encode)

    Files at or below max_bytes are returned untouched as a single segment.
    """

    def __init__(self, max_bytes: int = 20 * 1024 * 1024, segment_seconds: int = 600, timeout: float = 600):
        self.max_bytes = max_bytes
        self.segment_seconds = segment_seconds
        self.timeout = timeout

    def needs_split(self, audio_path: Path) -> bool:
        return Path(audio_path).stat().st_size > self.max_bytes

    def split(self, audio_path: Path, output_dir: Path) -> List[AudioSegment]:
        """
        Split audio into ordered segments when it is too large for one request

        :param audio_path: extracted audio
        :param output_dir: directory for segment files (created if missing)
        :return: segments sorted by index
        :raises SegmentationError: when ffmpeg fails or produces nothing
        """
        audio_path = Path(audio_path)
        size = audio_path.stat().st_size

        if not self.needs_split(audio_path):
            logger.info(
                f"[Segment] {audio_path.name} is {size / (1024 * 1024):.2f} MB, no split needed"
            )
            return [AudioSegment(index=0, path=audio_path, offset=0.0, owned=False)]

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        pattern = output_dir / f"{audio_path.stem}_%03d{audio_path.suffix}"

        logger.info(
            f"[Segment] {audio_path.name} is {size / (1024 * 1024):.2f} MB, "
            f"splitting into {self.segment_seconds}s chunks"
        )

        cmd = [
            FFMPEG,
            "-y",
            "-hide_banner",
            "-loglevel", "error",
            "-i", str(audio_path),
            "-f", "segment",
            "-segment_time", str(self.segment_seconds),
            "-c", "copy",
            "-reset_timestamps", "1",
            str(pattern),
        ]
        try:
            subprocess.run(cmd, check=True, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.CalledProcessError as e:
            details = stderr_tail(e.stderr or "") or f"ffmpeg exited with code {e.returncode}"
            raise SegmentationError("Audio segmentation failed", details=details, cause=e) from e
        except (OSError, subprocess.TimeoutExpired) as e:
            raise SegmentationError("Audio segmentation failed", details=str(e), cause=e) from e

        segments = self.collect(audio_path, output_dir)
        if not segments:
            raise SegmentationError("Audio segmentation failed", details="ffmpeg produced no segments")

        logger.info(f"[Segment] created {len(segments)} segments")
        return segments

    def collect(self, audio_path: Path, output_dir: Path) -> List[AudioSegment]:
        """Find the segment files written for audio_path and order them by index"""
        index_re = re.compile(rf"^{re.escape(audio_path.stem)}_(\d+){re.escape(audio_path.suffix)}$")
        found = []
        for path in output_dir.glob(f"{audio_path.stem}_*{audio_path.suffix}"):
            match = index_re.match(path.name)
            if match:
                found.append((int(match.group(1)), path))
        found.sort()

        segments = []
        offset: Optional[float] = 0.0
        for index, path in found:
            if offset is None:
                # a previous duration was unreadable, use the nominal cut point
                offset = float(index * self.segment_seconds)
                logger.warning(f"[Segment] offset of {path.name} unknown, assuming {offset:.0f}s")
            duration = probe_duration(path)
            segments.append(
                AudioSegment(index=index, path=path, duration=duration, offset=offset)
            )
            offset = offset + duration if duration is not None else None
        return segments
