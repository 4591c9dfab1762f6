"""
Audio extraction: video container → mono, low-bitrate, speech-optimized MP3
"""
import logging
import subprocess
import tempfile
import threading
from pathlib import Path
from typing import Callable, Optional

from case_transcriber.exceptions import ConversionError
from case_transcriber.media.ffmpeg import FFMPEG, probe_duration, stderr_tail

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class AudioExtractor:
    """
    Extracts the audio track of an uploaded video with ffmpeg

    The output favors recognition over fidelity: one channel, 16 kHz, 64 kbps.
    """

    def __init__(self, sample_rate: int = 16000, bitrate: str = "64k", timeout: float = 600):
        self.sample_rate = sample_rate
        self.bitrate = bitrate
        self.timeout = timeout

    def build_command(self, video_path: Path, output_path: Path) -> list[str]:
        return [
            FFMPEG,
            "-y",
            "-hide_banner",
            "-loglevel", "error",
            "-i", str(video_path),
            "-vn",                          # drop the video stream
            "-ac", "1",                     # mono
            "-ar", str(self.sample_rate),
            "-b:a", self.bitrate,
            "-progress", "pipe:1",
            "-nostats",
            str(output_path),
        ]

    def extract(
        self,
        video_path: Path,
        output_path: Path,
        progress: Optional[ProgressCallback] = None,
    ) -> Path:
        """
        Convert a video file to speech audio

        :param video_path: uploaded video
        :param output_path: audio file to write (.mp3)
        :param progress: optional callback receiving a 0-100 percentage (best effort)
        :return: output_path
        :raises ConversionError: when the input cannot be decoded or ffmpeg exceeds the timeout
        """
        video_path = Path(video_path)
        output_path = Path(output_path)
        logger.info(f"[Extract] {video_path.name} -> {output_path.name}")

        total = probe_duration(video_path) if progress else None

        # stderr goes to a file so a chatty ffmpeg never blocks on a full pipe
        with tempfile.TemporaryFile(mode="w+") as stderr_file:
            try:
                process = subprocess.Popen(
                    self.build_command(video_path, output_path),
                    stdout=subprocess.PIPE,
                    stderr=stderr_file,
                    text=True,
                )
            except OSError as e:
                raise ConversionError("Audio conversion failed", details=str(e), cause=e) from e

            timed_out = threading.Event()

            def _kill():
                timed_out.set()
                process.kill()

            watchdog = threading.Timer(self.timeout, _kill)
            watchdog.daemon = True
            watchdog.start()
            try:
                for line in process.stdout:
                    if progress and total:
                        self._report(line, total, progress)
                returncode = process.wait()
            finally:
                watchdog.cancel()
                process.stdout.close()

            stderr_file.seek(0)
            stderr = stderr_file.read()

        if timed_out.is_set() and returncode != 0:
            self._discard(output_path)
            logger.error(f"[Extract] {video_path.name} timed out after {self.timeout}s")
            raise ConversionError(
                "Audio conversion timed out",
                details=f"ffmpeg did not finish within {self.timeout}s",
            )

        if returncode != 0 or not output_path.exists() or output_path.stat().st_size == 0:
            self._discard(output_path)
            details = stderr_tail(stderr) or f"ffmpeg exited with code {returncode}"
            logger.error(f"[Extract] failed for {video_path.name}: {details}")
            raise ConversionError("Audio conversion failed", details=details)

        size_mb = output_path.stat().st_size / (1024 * 1024)
        logger.info(f"[Extract] done: {output_path.name} ({size_mb:.2f} MB)")
        return output_path

    @staticmethod
    def _report(line: str, total: float, progress: ProgressCallback):
        """Translate ffmpeg's out_time_ms (microseconds) into a percentage"""
        key, _, value = line.strip().partition("=")
        if key != "out_time_ms":
            return
        try:
            percent = min(100.0, int(value) / 1_000_000 / total * 100)
        except ValueError:
            return
        try:
            progress(round(percent, 1))
        except Exception as e:
            logger.warning(f"[Extract] progress callback failed: {e}")

    @staticmethod
    def _discard(output_path: Path):
        try:
            output_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"[Extract] could not remove partial output {output_path}: {e}")
