import shutil
import subprocess
import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest
from fastapi.testclient import TestClient

from case_transcriber import create_app
from case_transcriber.config import Settings
from case_transcriber.dependencies import get_transcription_service
from case_transcriber.exceptions import ConversionError
from case_transcriber.llm.base import SpeakerRelabeler
from case_transcriber.media.extractor import AudioExtractor
from case_transcriber.media.segmenter import Segmenter
from case_transcriber.models.audio import AudioSegment
from case_transcriber.models.transcript import TranscriptResult, TranscriptSegment
from case_transcriber.services.transcription_service import TranscriptionService
from case_transcriber.transcribers.base import Transcriber

HAS_FFMPEG = shutil.which("ffmpeg") is not None and shutil.which("ffprobe") is not None
requires_ffmpeg = pytest.mark.skipif(not HAS_FFMPEG, reason="ffmpeg/ffprobe not installed")


# ==================== Test doubles ====================


class CannedTranscriber(Transcriber):
    """Returns canned text per file name; Exception values are raised instead"""

    def __init__(self, responses: Optional[Dict[str, Union[str, Exception]]] = None, default: str = "Olá, tudo bem?"):
        self.responses = responses or {}
        self.default = default
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def transcribe(self, file_path: str) -> TranscriptResult:
        name = Path(file_path).name
        with self._lock:
            self.calls.append(name)
        response = self.responses.get(name, self.default)
        if isinstance(response, Exception):
            raise response
        return TranscriptResult(
            language="pt",
            full_text=response,
            segments=[TranscriptSegment(start=0.0, end=1.5, text=response)],
        )


class CannedRelabeler(SpeakerRelabeler):
    def __init__(self, response: Union[str, Exception]):
        self.response = response
        self.prompts: List[str] = []

    def relabel(self, transcript, labels):
        self.prompts.append(transcript)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class FakeExtractor(AudioExtractor):
    """Writes a fixed number of bytes instead of running ffmpeg"""

    def __init__(self, size: int = 2048):
        super().__init__()
        self.size = size
        self.calls: List[Path] = []

    def extract(self, video_path, output_path, progress=None):
        self.calls.append(Path(video_path))
        Path(output_path).write_bytes(b"\x00" * self.size)
        return Path(output_path)


class BrokenExtractor(AudioExtractor):
    def extract(self, video_path, output_path, progress=None):
        raise ConversionError("Audio conversion failed", details="moov atom not found")


class FakeSegmenter(Segmenter):
    """Always splits into `count` owned segment files"""

    def __init__(self, count: int, segment_seconds: int = 600):
        super().__init__(max_bytes=1, segment_seconds=segment_seconds)
        self.count = count

    def split(self, audio_path, output_dir):
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        segments = []
        for index in range(self.count):
            path = output_dir / f"{Path(audio_path).stem}_{index:03d}.mp3"
            path.write_bytes(b"\x01" * 16)
            segments.append(AudioSegment(index=index, path=path, duration=600.0, offset=index * 600.0))
        return segments


# ==================== Fixtures ====================


@pytest.fixture
def work_dir(tmp_path) -> Path:
    return tmp_path / "work"


@pytest.fixture
def test_settings(work_dir) -> Settings:
    return Settings(
        work_dir=work_dir,
        transcription_api_key="test-key",
        attribution_strategy="heuristic",
        llm_api_key="",
        result_webhook_url="",
        cleanup_delay_seconds=0,
        transcription_concurrency=1,
        max_upload_mb=5,
    )


@pytest.fixture
def transcriber() -> CannedTranscriber:
    return CannedTranscriber()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def service(test_settings, extractor, transcriber) -> TranscriptionService:
    return TranscriptionService(config=test_settings, extractor=extractor, transcriber=transcriber)


@pytest.fixture
def make_client():
    def _make(service: TranscriptionService) -> TestClient:
        app = create_app()
        app.dependency_overrides[get_transcription_service] = lambda: service
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client, service) -> TestClient:
    return make_client(service)


def workspace_files(work_dir: Path) -> List[Path]:
    if not work_dir.exists():
        return []
    return [p for p in work_dir.rglob("*")]


def run_ffmpeg(*args: str):
    subprocess.run(["ffmpeg", "-y", "-hide_banner", "-loglevel", "error", *args], check=True, capture_output=True)


def make_test_video(path: Path, seconds: int = 3) -> Path:
    """Small mp4 with a test pattern and a tone"""
    run_ffmpeg(
        "-f", "lavfi", "-i", f"testsrc=size=160x120:rate=10:duration={seconds}",
        "-f", "lavfi", "-i", f"sine=frequency=440:sample_rate=44100:duration={seconds}",
        "-c:v", "mpeg4", "-c:a", "aac", "-shortest",
        str(path),
    )
    return path
