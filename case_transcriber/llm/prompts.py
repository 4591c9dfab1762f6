"""
Prompt templates for speaker re-labeling
"""
from typing import Sequence

SYSTEM_PROMPT = """You separate phone and video call transcripts by speaker.

The call is an intake conversation for a legal case, usually in Brazilian Portuguese.
One participant is the company's representative who asks questions and explains the process.
The other is the client who describes what happened to them.

Output rules:
- Return only the transcript, split into turns
- Start every turn with the speaker label in bold followed by a colon, e.g. **Label:**
- Use only the labels you are given
- Keep the original words and language; do not translate, summarize or correct the text
- Do not wrap the output in a code block"""


USER_PROMPT_TEMPLATE = """Labels:
- **{interviewer}:** the company representative
- **{client}:** the client

Transcript:
---
{transcript}
---"""


def build_user_prompt(transcript: str, labels: Sequence[str]) -> str:
    return USER_PROMPT_TEMPLATE.format(
        interviewer=labels[0],
        client=labels[1],
        transcript=transcript,
    )
