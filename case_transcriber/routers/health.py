"""
Service metadata and health routes
"""
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from case_transcriber import __version__
from case_transcriber.dependencies import get_transcription_service
from case_transcriber.models.api import HealthResponse, ServiceInfo
from case_transcriber.services.transcription_service import TranscriptionService

router = APIRouter(tags=["service"])

_started_at = time.monotonic()


@router.get("/", summary="Service metadata", response_model=ServiceInfo)
def root():
    return ServiceInfo(
        service="case-transcriber",
        version=__version__,
        message="Transcription server is running",
        endpoints=["POST /upload", "GET /health"],
    )


@router.get("/health", summary="Health check", response_model=HealthResponse)
def health(service: TranscriptionService = Depends(get_transcription_service)):
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=round(time.monotonic() - _started_at, 3),
        features=service.features(),
    )
