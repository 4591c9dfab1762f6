"""
Rendering and parsing of speaker-labeled transcripts

Format: one block per run of same-speaker utterances, `**Label:** text`,
blocks separated by a blank line.
"""
import re
from typing import List, Optional, Sequence

from case_transcriber.models.transcript import Utterance


def format_blocks(utterances: Sequence[Utterance]) -> str:
    blocks: List[tuple[Optional[str], List[str]]] = []
    for utterance in utterances:
        if blocks and blocks[-1][0] == utterance.speaker:
            blocks[-1][1].append(utterance.text)
        else:
            blocks.append((utterance.speaker, [utterance.text]))

    rendered = []
    for speaker, texts in blocks:
        body = " ".join(texts)
        rendered.append(f"**{speaker}:** {body}" if speaker else body)
    return "\n\n".join(rendered)


def parse_blocks(text: str, labels: Sequence[str]) -> List[Utterance]:
    """
    Read `**Label:**` blocks back into utterances

    Accepts `**Label:**` and `**Label**:`. Markers with unknown labels are
    treated as text. Anything before the first known marker is dropped.
    Returns an empty list when no known marker is present.
    """
    alternatives = "|".join(re.escape(label) for label in labels)
    marker = re.compile(rf"\*\*\s*({alternatives})\s*(?::\s*\*\*|\*\*\s*:)", re.IGNORECASE)
    canonical = {label.lower(): label for label in labels}

    matches = list(marker.finditer(text))
    utterances = []
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        body = " ".join(text[match.end():end].split())
        if body:
            utterances.append(
                Utterance(text=body, speaker=canonical[match.group(1).lower()], source="llm")
            )
    return utterances
