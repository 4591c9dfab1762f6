"""
Sentence-level splitting of a transcript into utterances
"""
import re
from typing import List

PLACEHOLDER_RE = re.compile(r"^\[transcription error for segment \d+\]$")

# Break after terminal punctuation or a placeholder, and before a placeholder
_BOUNDARY_RE = re.compile(r"(?<=[.!?…\]])\s+|\s+(?=\[transcription error for segment \d+\])")


def split_sentences(text: str) -> List[str]:
    """
    Split a transcript into sentences

    Whitespace is collapsed first, so joining the result with single spaces
    gives back the normalized transcript.
    """
    normalized = " ".join(text.split())
    if not normalized:
        return []
    return [piece.strip() for piece in _BOUNDARY_RE.split(normalized) if piece.strip()]


def is_placeholder(sentence: str) -> bool:
    return bool(PLACEHOLDER_RE.match(sentence))
