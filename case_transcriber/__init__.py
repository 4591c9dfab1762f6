"""
Case Transcriber - video upload to speaker-attributed transcript
"""
from fastapi import FastAPI

__version__ = "0.1.0"


def create_app() -> FastAPI:
    from case_transcriber.routers import health, upload

    app = FastAPI(
        title="Case Transcriber",
        description="Upload a video, get its transcript organized by speaker for case registration",
        version=__version__,
    )
    app.include_router(health.router)
    app.include_router(upload.router)
    return app
