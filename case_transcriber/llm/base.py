"""
LLM speaker re-labeling abstract base class
"""
from abc import ABC, abstractmethod
from typing import Sequence


class SpeakerRelabeler(ABC):
    """Language model that re-segments a transcript by speaker"""

    @abstractmethod
    def relabel(self, transcript: str, labels: Sequence[str]) -> str:
        """
        Ask the model to attribute the transcript to speakers

        :param transcript: plain transcript text (already length-bounded)
        :param labels: the allowed speaker labels
        :return: free text expected to contain `**Label:**` blocks
        """
        ...
