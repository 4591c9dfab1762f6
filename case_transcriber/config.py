"""
Case Transcriber configuration
Loads every setting from the environment (.env supported) and exposes a global settings singleton
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

# Values shipped in example .env files that must not count as real credentials
_PLACEHOLDER_VALUES = {
    "changeme",
    "change-me",
    "none",
    "null",
    "xxx",
    "api_key",
    "your_api_key",
    "your-api-key",
}


def is_configured(value: Optional[str]) -> bool:
    """Return False for empty or placeholder credentials"""
    if not value:
        return False
    normalized = value.strip().lower()
    if not normalized or normalized in _PLACEHOLDER_VALUES:
        return False
    if normalized.startswith(("your_", "your-", "<")) or normalized.startswith("sk-xxx"):
        return False
    return True


def _split_labels(raw: str) -> tuple[str, ...]:
    labels = tuple(label.strip() for label in raw.split(",") if label.strip())
    if len(labels) < 2:
        raise ValueError(f"SPEAKER_LABELS needs two labels, got: {raw!r}")
    return labels[:2]


@dataclass
class Settings:
    """Global configuration"""

    # Server
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))

    # Uploads and per-job workspaces
    work_dir: Path = BASE_DIR / os.getenv("WORK_DIR", "work")
    max_upload_mb: int = int(os.getenv("MAX_UPLOAD_MB", "100"))
    cleanup_delay_seconds: float = float(os.getenv("CLEANUP_DELAY_SECONDS", "2"))

    # Audio extraction (speech-optimized mono)
    audio_sample_rate: int = int(os.getenv("AUDIO_SAMPLE_RATE", "16000"))
    audio_bitrate: str = os.getenv("AUDIO_BITRATE", "64k")
    extract_timeout: float = float(os.getenv("EXTRACT_TIMEOUT", "600"))

    # Segmentation (the provider rejects payloads above 20 MB)
    max_chunk_mb: float = float(os.getenv("MAX_CHUNK_MB", "20"))
    segment_seconds: int = int(os.getenv("SEGMENT_SECONDS", "600"))
    segment_timeout: float = float(os.getenv("SEGMENT_TIMEOUT", "600"))

    # Speech-to-text (any OpenAI compatible endpoint: OpenAI / Groq)
    transcription_api_key: str = os.getenv("TRANSCRIPTION_API_KEY", os.getenv("OPENAI_API_KEY", ""))
    transcription_base_url: str = os.getenv("TRANSCRIPTION_BASE_URL", "https://api.openai.com/v1")
    transcription_model: str = os.getenv("TRANSCRIPTION_MODEL", "whisper-1")
    transcription_language: str = os.getenv("TRANSCRIPTION_LANGUAGE", "pt")
    transcription_timeout: float = float(os.getenv("TRANSCRIPTION_TIMEOUT", "120"))
    transcription_max_retries: int = int(os.getenv("TRANSCRIPTION_MAX_RETRIES", "1"))
    transcription_concurrency: int = int(os.getenv("TRANSCRIPTION_CONCURRENCY", "1"))

    # Speaker attribution: auto / llm / heuristic / none
    attribution_strategy: str = os.getenv("ATTRIBUTION_STRATEGY", "auto")
    speaker_labels: tuple[str, ...] = field(
        default_factory=lambda: _split_labels(os.getenv("SPEAKER_LABELS", "Closer,Cliente"))
    )

    # LLM re-labeling (optional)
    llm_provider: str = os.getenv("LLM_PROVIDER", "")
    llm_api_key: str = os.getenv("LLM_API_KEY", "")
    llm_base_url: str = os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")
    llm_model: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    llm_timeout: float = float(os.getenv("LLM_TIMEOUT", "60"))
    llm_max_chars: int = int(os.getenv("LLM_MAX_CHARS", "12000"))

    # Result forwarding (optional)
    result_webhook_url: str = os.getenv("RESULT_WEBHOOK_URL", "")
    webhook_timeout: float = float(os.getenv("WEBHOOK_TIMEOUT", "30"))

    def __post_init__(self):
        self.work_dir = Path(self.work_dir)
        self.work_dir.mkdir(parents=True, exist_ok=True)
        self.attribution_strategy = self.attribution_strategy.lower()

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_mb * 1024 * 1024)

    @property
    def max_chunk_bytes(self) -> int:
        return int(self.max_chunk_mb * 1024 * 1024)

    @property
    def transcription_configured(self) -> bool:
        return is_configured(self.transcription_api_key)

    @property
    def llm_configured(self) -> bool:
        return is_configured(self.llm_api_key)

    @property
    def llm_enabled(self) -> bool:
        return self.attribution_strategy in ("auto", "llm") and self.llm_configured

    @property
    def webhook_configured(self) -> bool:
        return bool(self.result_webhook_url.strip())


settings = Settings()
