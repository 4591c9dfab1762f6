"""
Case Transcriber - video upload transcription server

Run:
    python main.py
    or
    uvicorn main:app --host 0.0.0.0 --port 3000
"""
import logging

import uvicorn

from case_transcriber import create_app
from case_transcriber.config import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-7s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("case_transcriber")

app = create_app()

if __name__ == "__main__":
    logger.info(f"Starting on http://{settings.host}:{settings.port}")
    logger.info(f"API docs: http://127.0.0.1:{settings.port}/docs")
    logger.info(f"Transcription: {settings.transcription_model} @ {settings.transcription_base_url}")
    logger.info(f"Attribution: strategy={settings.attribution_strategy}, labels={', '.join(settings.speaker_labels)}")
    if not settings.transcription_configured:
        logger.warning("TRANSCRIPTION_API_KEY is not configured, uploads will be rejected")

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        reload=False,
    )
