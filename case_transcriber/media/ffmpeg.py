"""
Thin wrappers around the ffmpeg / ffprobe binaries
"""
import logging
import subprocess
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

FFMPEG = "ffmpeg"
FFPROBE = "ffprobe"


def probe_duration(file_path: Path, timeout: float = 30) -> Optional[float]:
    """
    Read a media file's duration in seconds with ffprobe

    :param file_path: media file
    :param timeout: seconds before giving up
    :return: duration, or None when ffprobe is missing or cannot read it
    """
    cmd = [
        FFPROBE,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(file_path),
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=timeout)
        return float(result.stdout.strip())
    except (OSError, subprocess.SubprocessError, ValueError) as e:
        logger.debug(f"[ffprobe] duration unavailable for {file_path}: {e}")
        return None


def stderr_tail(stderr: str, lines: int = 5) -> str:
    """Keep only the last few ffmpeg error lines"""
    tail: List[str] = [line for line in stderr.strip().splitlines() if line.strip()]
    return "\n".join(tail[-lines:])
