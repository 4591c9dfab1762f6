"""
Joins per-segment transcripts into one transcript, in segment order
"""
from typing import Iterable

from case_transcriber.models.transcript import AssembledTranscript, SegmentSpan, SegmentTranscript


def assemble_transcript(transcripts: Iterable[SegmentTranscript]) -> AssembledTranscript:
    """
    Concatenate segment texts with a single space, ordered by segment index

    Empty texts (silent segments) add nothing. Spans record where each segment
    landed in the joined text; an empty segment gets a zero-width span.
    """
    parts = []
    spans = []
    failed = []
    cursor = 0

    for transcript in sorted(transcripts, key=lambda t: t.index):
        if transcript.failed:
            failed.append(transcript.index)
        text = transcript.text.strip()
        if not text:
            spans.append(SegmentSpan(index=transcript.index, start=cursor, end=cursor))
            continue
        if parts:
            cursor += 1
        spans.append(SegmentSpan(index=transcript.index, start=cursor, end=cursor + len(text)))
        parts.append(text)
        cursor += len(text)

    return AssembledTranscript(text=" ".join(parts), spans=spans, failed_indices=failed)
