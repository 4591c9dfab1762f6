"""
Speech-to-text abstract base class
"""
from abc import ABC, abstractmethod

from case_transcriber.models.transcript import TranscriptResult


class Transcriber(ABC):
    """Speech-to-text provider"""

    @abstractmethod
    def transcribe(self, file_path: str) -> TranscriptResult:
        """
        Transcribe one audio file

        :param file_path: audio file path
        :return: recognized text, with time-aligned segments when the provider returns them
        """
        ...
