import io
import json

import httpx
import pytest

from case_transcriber.exceptions import ConversionError, ValidationError
from case_transcriber.models.job import JobStage
from case_transcriber.services.transcription_service import TranscriptionService
from case_transcriber.services.webhook import WebhookNotifier
from case_transcriber.transcribers.base import Transcriber
from case_transcriber.transcribers.runner import placeholder_text
from conftest import BrokenExtractor, CannedRelabeler, CannedTranscriber, FakeExtractor, FakeSegmenter, workspace_files


class SecondSegmentFails(Transcriber):
    def __init__(self):
        self.inner = CannedTranscriber(default="Trecho gravado.")

    def transcribe(self, file_path):
        if file_path.endswith("_001.mp3"):
            raise TimeoutError("provider timed out")
        return self.inner.transcribe(file_path)


@pytest.fixture
def video(tmp_path):
    path = tmp_path / "chamada.mp4"
    path.write_bytes(b"\x00" * 4096)
    return path


def test_transcribe_file_returns_stats_and_cleans_up(service, video, work_dir):
    result = service.transcribe_file(video)

    assert result.transcription == "Olá, tudo bem?"
    assert result.organized_transcription == "**Closer:** Olá, tudo bem?"
    assert result.stats.original_size == 4096
    assert result.stats.audio_size == 2048
    assert result.stats.chunks == 1
    assert result.stats.failed_chunks == 0
    assert result.stats.method == "heuristic"
    assert result.stats.diarization
    assert result.stats.transcription_length == len(result.transcription)
    assert result.stats.organized_length == len(result.organized_transcription)
    assert workspace_files(work_dir) == []
    assert video.exists()


def test_failed_segment_does_not_fail_the_job(test_settings, video, work_dir):
    service = TranscriptionService(
        config=test_settings,
        extractor=FakeExtractor(),
        segmenter=FakeSegmenter(count=3),
        transcriber=SecondSegmentFails(),
    )

    result = service.transcribe_file(video)

    assert result.stats.chunks == 3
    assert result.stats.failed_chunks == 1
    assert result.transcription == f"Trecho gravado. {placeholder_text(1)} Trecho gravado."
    assert placeholder_text(1) in result.organized_transcription
    assert workspace_files(work_dir) == []


def test_conversion_failure_marks_job_failed(test_settings, work_dir):
    service = TranscriptionService(config=test_settings, extractor=BrokenExtractor(), transcriber=CannedTranscriber())
    job = service.create_job(io.BytesIO(b"\x00" * 128), "broken.mp4")

    with pytest.raises(ConversionError) as excinfo:
        service.process(job)

    assert excinfo.value.details == "moov atom not found"
    assert job.stage == JobStage.FAILED
    assert job.error == "Audio conversion failed"

    service.cleanup(job)
    assert workspace_files(work_dir) == []


def test_transcribe_file_cleans_up_on_failure(test_settings, video, work_dir):
    service = TranscriptionService(config=test_settings, extractor=BrokenExtractor(), transcriber=CannedTranscriber())

    with pytest.raises(ConversionError):
        service.transcribe_file(video)

    assert workspace_files(work_dir) == []


def test_jobs_get_distinct_workspaces(service):
    first = service.create_job(io.BytesIO(b"a"), "call.mp4")
    second = service.create_job(io.BytesIO(b"b"), "call.mp4")

    assert first.workspace != second.workspace
    assert first.video_path.name != second.video_path.name
    assert first.video_path.suffix == ".mp4"


@pytest.mark.parametrize("payload", [b"", b"\x00" * (5 * 1024 * 1024 + 1)])
def test_empty_and_oversized_uploads_are_rejected(service, work_dir, payload):
    with pytest.raises(ValidationError):
        service.create_job(io.BytesIO(payload), "call.mp4")

    assert workspace_files(work_dir) == []


def test_missing_credential_fails_before_any_work(test_settings, video, work_dir):
    test_settings.transcription_api_key = ""
    extractor = FakeExtractor()
    service = TranscriptionService(config=test_settings, extractor=extractor, transcriber=CannedTranscriber())

    with pytest.raises(ValidationError):
        service.transcribe_file(video)

    assert extractor.calls == []
    assert workspace_files(work_dir) == []


def test_llm_relabeler_is_used_by_the_pipeline(test_settings, video):
    test_settings.attribution_strategy = "auto"
    relabeler = CannedRelabeler("**Closer:** Olá, tudo bem?")
    service = TranscriptionService(
        config=test_settings,
        extractor=FakeExtractor(),
        transcriber=CannedTranscriber(),
        relabeler=relabeler,
    )

    result = service.transcribe_file(video)

    assert result.stats.method == "llm"
    assert relabeler.prompts == ["Olá, tudo bem?"]


def test_completed_result_is_posted_to_webhook(test_settings, video):
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(json.loads(request.content))
        return httpx.Response(204)

    notifier = WebhookNotifier(
        "https://hooks.example.test/transcripts",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    service = TranscriptionService(
        config=test_settings,
        extractor=FakeExtractor(),
        transcriber=CannedTranscriber(),
        notifier=notifier,
    )

    service.transcribe_file(video)

    assert len(received) == 1
    assert received[0]["transcription"] == "Olá, tudo bem?"
    assert received[0]["stats"]["failedChunks"] == 0
    assert received[0]["stats"]["originalSize"] == 4096


def test_webhook_failure_does_not_fail_the_job(test_settings, video):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    notifier = WebhookNotifier(
        "https://hooks.example.test/transcripts",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    service = TranscriptionService(
        config=test_settings,
        extractor=FakeExtractor(),
        transcriber=CannedTranscriber(),
        notifier=notifier,
    )

    result = service.transcribe_file(video)

    assert result.transcription == "Olá, tudo bem?"


def test_webhook_reports_error_status():
    notifier = WebhookNotifier(
        "https://hooks.example.test/transcripts",
        client=httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(503))),
    )
    assert notifier.notify({"transcription": ""}) is False


def test_features_reflect_configuration(service):
    features = service.features()
    assert features["diarization"] is True
    assert features["llmRelabel"] is False
    assert features["webhook"] is False
    assert features["transcriptionConfigured"] is True


def test_media_timeouts_come_from_settings(test_settings):
    test_settings.extract_timeout = 42.0
    test_settings.segment_timeout = 99.0

    service = TranscriptionService(config=test_settings, transcriber=CannedTranscriber())

    assert service.extractor.timeout == 42.0
    assert service.segmenter.timeout == 99.0
