"""FastAPI dependency providers."""
from functools import lru_cache

from case_transcriber.services.transcription_service import TranscriptionService


@lru_cache(maxsize=1)
def get_transcription_service() -> TranscriptionService:
    """Process-wide service; it holds configuration and clients, never job state."""
    return TranscriptionService()
