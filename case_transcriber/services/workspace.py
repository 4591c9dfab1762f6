"""
Per-job working directories and artifact cleanup
"""
import logging
import secrets
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Iterable

from case_transcriber.exceptions import ValidationError
from case_transcriber.models.job import UploadJob

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024


def unique_stem() -> str:
    """UTC timestamp plus random hex, unique across concurrent jobs"""
    return f"{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S%f')}-{secrets.token_hex(4)}"


def create_workspace(root: Path) -> Path:
    root = Path(root)
    root.mkdir(parents=True, exist_ok=True)
    while True:
        workspace = root / unique_stem()
        try:
            workspace.mkdir()
            return workspace
        except FileExistsError:
            continue


def upload_filename(original_filename: str) -> str:
    """Stored upload name: unique stem plus the original extension"""
    suffix = Path(original_filename or "").suffix.lower()
    return f"{unique_stem()}{suffix or '.bin'}"


def save_upload(stream: BinaryIO, destination: Path, max_bytes: int) -> int:
    """
    Stream an upload to disk, stopping as soon as it exceeds max_bytes

    :return: bytes written
    :raises ValidationError: when the upload is larger than max_bytes
    """
    written = 0
    with open(destination, "wb") as out:
        while True:
            chunk = stream.read(COPY_CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                out.close()
                destination.unlink(missing_ok=True)
                raise ValidationError(f"File too large, limit is {max_bytes // (1024 * 1024)} MB")
            out.write(chunk)
    return written


def remove_artifacts(job: UploadJob) -> None:
    """
    Delete every file a job produced, then its workspace

    Errors are logged and never raised.
    """
    for path in _artifacts(job):
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"[Cleanup] could not delete {path}: {e}")

    try:
        if job.workspace.exists():
            shutil.rmtree(job.workspace)
    except OSError as e:
        logger.warning(f"[Cleanup] could not remove workspace {job.workspace}: {e}")
        return
    logger.info(f"[Cleanup] job {job.job_id} artifacts removed")


def _artifacts(job: UploadJob) -> Iterable[Path]:
    yield job.video_path
    if job.audio_path is not None:
        yield job.audio_path
    for segment in job.segments:
        yield segment.path
