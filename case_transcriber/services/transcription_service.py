"""
Transcription pipeline orchestrator
Sequences one upload: extract → segment → transcribe → assemble → attribute
"""
import logging
import time
from pathlib import Path
from typing import BinaryIO, Callable, Optional

from case_transcriber.config import Settings, settings as default_settings
from case_transcriber.diarization.engine import SpeakerAttributionEngine
from case_transcriber.exceptions import PipelineError, ValidationError
from case_transcriber.llm.base import SpeakerRelabeler
from case_transcriber.media.extractor import AudioExtractor
from case_transcriber.media.segmenter import Segmenter
from case_transcriber.models.api import UploadResponse
from case_transcriber.models.job import JobStage, JobStats, TranscriptionResult, UploadJob
from case_transcriber.services.assembler import assemble_transcript
from case_transcriber.services.webhook import WebhookNotifier
from case_transcriber.services.workspace import (
    create_workspace,
    remove_artifacts,
    save_upload,
    upload_filename,
)
from case_transcriber.transcribers.base import Transcriber
from case_transcriber.transcribers.runner import SegmentTranscriptionRunner

logger = logging.getLogger(__name__)


def _create_transcriber(config: Settings) -> Transcriber:
    """Build the speech-to-text client from configuration"""
    from case_transcriber.transcribers.openai_transcriber import OpenAIWhisperTranscriber

    return OpenAIWhisperTranscriber(
        api_key=config.transcription_api_key,
        base_url=config.transcription_base_url,
        model=config.transcription_model,
        language=config.transcription_language or None,
        timeout=config.transcription_timeout,
        max_retries=config.transcription_max_retries,
    )


def _create_relabeler(config: Settings) -> Optional[SpeakerRelabeler]:
    """Build the LLM layer, or None when it is disabled or has no credential

    Provider selection:
    - LLM_PROVIDER=anthropic, or a base_url mentioning "anthropic" -> AnthropicLLM
    - anything else -> OpenAILLM
    """
    if config.attribution_strategy == "llm" and not config.llm_configured:
        logger.warning("[Pipeline] ATTRIBUTION_STRATEGY=llm but LLM_API_KEY is not configured, using heuristics")
    if not config.llm_enabled:
        return None

    from case_transcriber.llm.openai_llm import AnthropicLLM, OpenAILLM

    provider = config.llm_provider.lower()
    if provider == "anthropic" or (not provider and "anthropic" in config.llm_base_url):
        return AnthropicLLM(
            api_key=config.llm_api_key,
            base_url=config.llm_base_url,
            model=config.llm_model,
            timeout=config.llm_timeout,
        )
    return OpenAILLM(
        api_key=config.llm_api_key,
        base_url=config.llm_base_url,
        model=config.llm_model,
        timeout=config.llm_timeout,
    )


class TranscriptionService:
    """
    Video transcription service

    Pipeline:
    1. Extract a mono speech track (ffmpeg)
    2. Split it when it exceeds the provider payload limit (ffmpeg segment muxer)
    3. Transcribe every segment, substituting placeholders for failed ones
    4. Join the segment texts in order
    5. Attribute sentences to speakers (rules / context / balance / optional LLM)

    Jobs share nothing; every job owns its workspace and is cleaned up on every exit path.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        extractor: Optional[AudioExtractor] = None,
        segmenter: Optional[Segmenter] = None,
        transcriber: Optional[Transcriber] = None,
        relabeler: Optional[SpeakerRelabeler] = None,
        notifier: Optional[WebhookNotifier] = None,
    ):
        self.settings = config or default_settings
        self.extractor = extractor or AudioExtractor(
            sample_rate=self.settings.audio_sample_rate,
            bitrate=self.settings.audio_bitrate,
            timeout=self.settings.extract_timeout,
        )
        self.segmenter = segmenter or Segmenter(
            max_bytes=self.settings.max_chunk_bytes,
            segment_seconds=self.settings.segment_seconds,
            timeout=self.settings.segment_timeout,
        )
        self._transcriber = transcriber
        self.engine = SpeakerAttributionEngine(
            labels=self.settings.speaker_labels,
            strategy=self.settings.attribution_strategy,
            relabeler=relabeler if relabeler is not None else _create_relabeler(self.settings),
            llm_max_chars=self.settings.llm_max_chars,
        )
        if notifier is None and self.settings.webhook_configured:
            notifier = WebhookNotifier(self.settings.result_webhook_url, timeout=self.settings.webhook_timeout)
        self.notifier = notifier
        logger.info(
            f"[Pipeline] ready: strategy={self.settings.attribution_strategy}, "
            f"llm={self.engine.uses_llm}, chunk_limit={self.settings.max_chunk_mb} MB"
        )

    @property
    def transcriber(self) -> Transcriber:
        if self._transcriber is None:
            self._transcriber = _create_transcriber(self.settings)
        return self._transcriber

    # ==================== Job lifecycle ====================

    def validate_credentials(self):
        """Fail fast before anything is written or executed"""
        if not self.settings.transcription_configured:
            raise ValidationError("Transcription API key is not configured")

    def create_job(self, stream: BinaryIO, filename: str) -> UploadJob:
        """
        Store an upload inside a fresh workspace

        :param stream: readable binary upload stream
        :param filename: original client filename (only its extension is kept)
        :raises ValidationError: empty or oversized upload
        """
        workspace = create_workspace(self.settings.work_dir)
        job = UploadJob(
            job_id=workspace.name,
            workspace=workspace,
            video_path=workspace / upload_filename(filename),
            original_filename=filename,
            api_key=self.settings.transcription_api_key,
            max_chunk_bytes=self.segmenter.max_bytes,
            segment_seconds=self.segmenter.segment_seconds,
        )
        try:
            size = save_upload(stream, job.video_path, self.settings.max_upload_bytes)
            if size == 0:
                raise ValidationError("Uploaded file is empty")
        except Exception:
            remove_artifacts(job)
            raise

        logger.info(f"[Pipeline] job {job.job_id} received {filename} ({size / (1024 * 1024):.2f} MB)")
        return job

    def process(
        self,
        job: UploadJob,
        progress: Optional[Callable[[float], None]] = None,
    ) -> TranscriptionResult:
        """
        Run the pipeline for one job

        Stages: received → extracting → segmenting → transcribing → assembling → attributing → completed / failed

        :raises ConversionError: the video could not be decoded
        :raises SegmentationError: the audio could not be split
        """
        try:
            self._advance(job, JobStage.EXTRACTING)
            original_size = job.video_path.stat().st_size
            job.audio_path = self.extractor.extract(
                job.video_path,
                job.workspace / f"{job.video_path.stem}.audio.mp3",
                progress=progress,
            )
            audio_size = job.audio_path.stat().st_size

            self._advance(job, JobStage.SEGMENTING)
            job.segments = self.segmenter.split(job.audio_path, job.segment_dir)

            self._advance(job, JobStage.TRANSCRIBING)
            runner = SegmentTranscriptionRunner(
                self.transcriber,
                max_workers=self.settings.transcription_concurrency,
            )
            transcripts = runner.run(job.segments)

            self._advance(job, JobStage.ASSEMBLING)
            assembled = assemble_transcript(transcripts)

            self._advance(job, JobStage.ATTRIBUTING)
            outcome = self.engine.attribute(assembled.text)

            result = TranscriptionResult(
                transcription=assembled.text,
                organized_transcription=outcome.organized_text,
                stats=JobStats(
                    original_size=original_size,
                    audio_size=audio_size,
                    chunks=len(job.segments),
                    failed_chunks=len(assembled.failed_indices),
                    transcription_length=len(assembled.text),
                    organized_length=len(outcome.organized_text),
                    diarization=outcome.diarized,
                    method=outcome.method,
                ),
            )
            self._advance(job, JobStage.COMPLETED)
        except Exception as exc:
            job.stage = JobStage.FAILED
            job.error = str(exc)
            logger.error(
                f"[Pipeline] job {job.job_id} failed: {exc}",
                exc_info=not isinstance(exc, PipelineError),
            )
            raise

        self._notify(result)
        return result

    def cleanup(self, job: UploadJob, delay: float = 0.0):
        """Delete a job's artifacts, optionally after letting the response flush"""
        if delay > 0:
            time.sleep(delay)
        remove_artifacts(job)

    def transcribe_file(self, video_path: Path) -> TranscriptionResult:
        """Run the whole pipeline on a local file, cleaning up before returning"""
        self.validate_credentials()
        video_path = Path(video_path)
        with open(video_path, "rb") as stream:
            job = self.create_job(stream, video_path.name)
        try:
            return self.process(job)
        finally:
            self.cleanup(job)

    def features(self) -> dict:
        return {
            "chunking": True,
            "diarization": self.engine.strategy != "none",
            "llmRelabel": self.engine.uses_llm,
            "webhook": self.notifier is not None,
            "transcriptionConfigured": self.settings.transcription_configured,
            "maxChunkSizeMB": self.settings.max_chunk_mb,
            "segmentDurationSeconds": self.segmenter.segment_seconds,
            "transcriptionConcurrency": self.settings.transcription_concurrency,
        }

    # ==================== Internals ====================

    @staticmethod
    def _advance(job: UploadJob, stage: JobStage):
        job.stage = stage
        logger.info(f"[Pipeline] job {job.job_id} -> {stage.value}")

    def _notify(self, result: TranscriptionResult):
        if self.notifier is None:
            return
        payload = UploadResponse.from_result(result, message="Transcription completed").model_dump(by_alias=True)
        self.notifier.notify(payload)
