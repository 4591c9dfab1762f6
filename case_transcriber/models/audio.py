"""
Audio segment data model
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class AudioSegment:
    """An ordered slice of the extracted audio"""
    index: int                         # 0-based position in the job
    path: Path                         # segment file on disk
    duration: Optional[float] = None   # seconds, None when not probed
    offset: Optional[float] = None     # seconds from the start of the audio
    owned: bool = True                 # False for the unsplit audio, cleaned by the job instead

    @property
    def size(self) -> int:
        return self.path.stat().st_size if self.path.exists() else 0
