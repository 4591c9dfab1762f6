"""
Whisper transcription over any OpenAI compatible /audio/transcriptions endpoint
Works with OpenAI (whisper-1) and Groq (whisper-large-v3-turbo)
"""
import logging
from pathlib import Path
from typing import Optional

from openai import OpenAI

from case_transcriber.models.transcript import TranscriptResult, TranscriptSegment
from case_transcriber.transcribers.base import Transcriber

logger = logging.getLogger(__name__)


class MalformedTranscriptionResponse(ValueError):
    """The provider answered without a usable text field"""


class OpenAIWhisperTranscriber(Transcriber):
    """
    Cloud Whisper transcriber

    Base URLs:
    - OpenAI: https://api.openai.com/v1
    - Groq:   https://api.groq.com/openai/v1
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "whisper-1",
        language: Optional[str] = "pt",
        timeout: float = 120.0,
        max_retries: int = 1,
    ):
        self.model = model
        self.language = language
        self.client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )
        logger.info(f"[Whisper] ready: model={model}, base_url={base_url}, timeout={timeout}s")

    def transcribe(self, file_path: str) -> TranscriptResult:
        file_size = Path(file_path).stat().st_size / (1024 * 1024)
        logger.info(f"[Whisper] transcribing {Path(file_path).name} ({file_size:.2f} MB)")

        with open(file_path, "rb") as audio_file:
            kwargs = {
                "model": self.model,
                "file": audio_file,
                "response_format": "verbose_json",
            }
            if self.language:
                kwargs["language"] = self.language

            response = self.client.audio.transcriptions.create(**kwargs)

        text = getattr(response, "text", None)
        if not isinstance(text, str):
            raise MalformedTranscriptionResponse(f"response has no text field: {type(response).__name__}")

        segments = []
        for seg in getattr(response, "segments", None) or []:
            if isinstance(seg, dict):
                start, end, seg_text = seg.get("start", 0.0), seg.get("end", 0.0), seg.get("text", "")
            else:
                start, end, seg_text = seg.start, seg.end, seg.text
            segments.append(TranscriptSegment(start=round(start, 2), end=round(end, 2), text=seg_text.strip()))

        full_text = text.strip()
        language = getattr(response, "language", None) or self.language
        logger.info(f"[Whisper] done: language={language}, segments={len(segments)}, chars={len(full_text)}")

        return TranscriptResult(language=language, full_text=full_text, segments=segments)
