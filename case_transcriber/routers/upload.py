"""
Upload API route

  POST /upload   multipart field `video` → transcript + speaker-organized transcript

The pipeline runs synchronously in FastAPI's threadpool. Job artifacts are
removed by a background task once the response has been sent, whatever the
outcome.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask

from case_transcriber.dependencies import get_transcription_service
from case_transcriber.exceptions import PipelineError, ValidationError
from case_transcriber.models.api import ErrorResponse, UploadResponse
from case_transcriber.services.transcription_service import TranscriptionService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["transcription"])


def _error(
    status_code: int,
    error: str,
    details: str = "",
    background: Optional[BackgroundTask] = None,
) -> JSONResponse:
    content = {"error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, background=background)


@router.post(
    "/upload",
    summary="Transcribe an uploaded video",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def upload_video(
    video: Optional[UploadFile] = File(None),
    service: TranscriptionService = Depends(get_transcription_service),
):
    if video is None or not video.filename:
        return _error(400, "No video file uploaded")

    content_type = video.content_type or ""
    if not content_type.startswith("video/"):
        return _error(400, f"Invalid file type '{content_type or 'unknown'}', a video file is required")

    try:
        service.validate_credentials()
        job = service.create_job(video.file, video.filename)
    except ValidationError as e:
        logger.info(f"[API] upload rejected: {e.message}")
        return _error(400, e.message)

    cleanup = BackgroundTask(service.cleanup, job, delay=service.settings.cleanup_delay_seconds)

    try:
        result = service.process(job)
    except PipelineError as e:
        return _error(500, e.message, e.details, background=cleanup)
    except Exception as e:
        logger.error(f"[API] job {job.job_id} crashed: {e}", exc_info=True)
        return _error(500, "Unrecoverable pipeline error", str(e), background=cleanup)

    body = UploadResponse.from_result(result, message="Transcription completed successfully")
    return JSONResponse(status_code=200, content=body.model_dump(by_alias=True), background=cleanup)
