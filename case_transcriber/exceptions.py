"""Error taxonomy for the upload → transcript pipeline."""
from typing import Optional


class CaseTranscriberError(Exception):
    """Base class for every error raised by the pipeline."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class ValidationError(CaseTranscriberError):
    """Bad or missing upload, or a missing provider credential. Maps to HTTP 400."""


class PipelineError(CaseTranscriberError):
    """Fatal media tooling failure. Aborts the job and maps to HTTP 500."""

    def __init__(self, message: str, details: str = "", cause: Optional[Exception] = None):
        self.details = details
        super().__init__(message, cause)


class ConversionError(PipelineError):
    """The uploaded container could not be decoded into audio."""


class SegmentationError(PipelineError):
    """The extracted audio could not be split into segments."""


class SegmentTranscriptionError(CaseTranscriberError):
    """One segment could not be transcribed. Recovered by the segment runner."""

    def __init__(self, index: int, message: str, cause: Optional[Exception] = None):
        self.index = index
        super().__init__(f"segment {index}: {message}", cause)


class AttributionLayerError(CaseTranscriberError):
    """One speaker attribution layer failed. Recovered by the engine."""

    def __init__(self, layer: str, message: str, cause: Optional[Exception] = None):
        self.layer = layer
        super().__init__(f"{layer} layer: {message}", cause)
