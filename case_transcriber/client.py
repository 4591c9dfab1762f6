"""
HTTP client for the upload endpoint

Posts a video the same way the browser form does and waits for the result,
bounded by a job-level timeout.
"""
import logging
import mimetypes
from pathlib import Path
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_JOB_TIMEOUT = 300.0


class UploadClientError(Exception):
    """The upload failed, timed out, or the server answered with an error"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[dict] = None):
        self.status_code = status_code
        self.body = body or {}
        super().__init__(message)


class UploadClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_JOB_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def upload(self, video_path: Path) -> dict:
        """
        Upload a video and return the parsed JSON result

        :param video_path: local video file
        :raises UploadClientError: on timeout, connection failure or non-2xx answer
        """
        video_path = Path(video_path)
        content_type = mimetypes.guess_type(video_path.name)[0] or "video/mp4"
        logger.info(f"[Client] uploading {video_path.name} to {self.base_url}/upload")

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                with open(video_path, "rb") as f:
                    response = client.post(
                        f"{self.base_url}/upload",
                        files={"video": (video_path.name, f, content_type)},
                    )
        except httpx.TimeoutException as e:
            raise UploadClientError(f"Upload timed out after {self.timeout:.0f}s") from e
        except httpx.RequestError as e:
            raise UploadClientError(f"Could not reach {self.base_url}: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            error = body.get("error") or response.reason_phrase
            raise UploadClientError(error, status_code=response.status_code, body=body)

        logger.info(f"[Client] done: {body.get('stats', {})}")
        return body
