"""
HTTP request / response models
"""
from typing import Dict, List, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from case_transcriber.models.job import TranscriptionResult


class UploadStats(BaseModel):
    """Per-job statistics, serialized in camelCase for the browser client"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    original_size: int
    audio_size: int
    chunks: int
    failed_chunks: int
    transcription_length: int
    organized_length: int
    diarization: bool
    method: str


class UploadResponse(BaseModel):
    message: str
    transcription: str
    organized_transcription: str
    stats: UploadStats

    @classmethod
    def from_result(cls, result: TranscriptionResult, message: str) -> "UploadResponse":
        stats = result.stats
        return cls(
            message=message,
            transcription=result.transcription,
            organized_transcription=result.organized_transcription,
            stats=UploadStats(
                original_size=stats.original_size,
                audio_size=stats.audio_size,
                chunks=stats.chunks,
                failed_chunks=stats.failed_chunks,
                transcription_length=stats.transcription_length,
                organized_length=stats.organized_length,
                diarization=stats.diarization,
                method=stats.method,
            ),
        )


class ErrorResponse(BaseModel):
    error: str
    details: str = ""


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    uptime: float
    features: Dict[str, Union[bool, int, float, str]]


class ServiceInfo(BaseModel):
    service: str
    version: str
    message: str
    endpoints: List[str]
