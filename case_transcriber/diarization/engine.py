"""
Speaker attribution engine

No voice-separation signal is available, so speakers are inferred from text:

1. lexical rules (first match wins)
2. context: answer after a question, first vs second person markers
3. balance: the least-used role so far
4. optional LLM re-labeling, tried first and discarded on any failure

Layers 1-3 are deterministic and keep their counters per call.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from case_transcriber.diarization.formatter import format_blocks, parse_blocks
from case_transcriber.diarization.rules import (
    CLIENT,
    FIRST_PERSON_RE,
    INTERVIEWER,
    SECOND_PERSON_RE,
    SPEAKER_RULES,
    SpeakerRule,
    match_rule,
)
from case_transcriber.diarization.sentences import is_placeholder, split_sentences
from case_transcriber.exceptions import AttributionLayerError
from case_transcriber.llm.base import SpeakerRelabeler
from case_transcriber.models.transcript import AttributionOutcome, Utterance

logger = logging.getLogger(__name__)

STRATEGIES = ("auto", "llm", "heuristic", "none")


def _other(role: int) -> int:
    return CLIENT if role == INTERVIEWER else INTERVIEWER


@dataclass
class _HeuristicState:
    """Running state of one heuristic pass"""
    counts: List[int] = field(default_factory=lambda: [0, 0])
    previous_role: Optional[int] = None
    previous_text: str = ""

    def record(self, role: int, text: str):
        self.counts[role] += 1
        self.previous_role = role
        self.previous_text = text


class SpeakerAttributionEngine:
    """
    Assigns a speaker label to every sentence of a transcript

    :param labels: two labels, interviewer first then client
    :param strategy: auto / llm / heuristic / none
    :param relabeler: optional LLM layer
    :param llm_max_chars: longest prefix sent to the LLM
    """

    def __init__(
        self,
        labels: Sequence[str] = ("Closer", "Cliente"),
        strategy: str = "auto",
        relabeler: Optional[SpeakerRelabeler] = None,
        llm_max_chars: int = 12000,
        rules: Sequence[SpeakerRule] = SPEAKER_RULES,
    ):
        if len(labels) != 2:
            raise ValueError(f"exactly two speaker labels are required, got {list(labels)}")
        if strategy not in STRATEGIES:
            raise ValueError(f"unknown attribution strategy: {strategy}, expected one of {STRATEGIES}")
        self.labels = tuple(labels)
        self.strategy = strategy
        self.relabeler = relabeler
        self.llm_max_chars = llm_max_chars
        self.rules = tuple(rules)

    @property
    def uses_llm(self) -> bool:
        return self.relabeler is not None and self.strategy in ("auto", "llm")

    def attribute(self, transcript: str) -> AttributionOutcome:
        sentences = split_sentences(transcript)
        if not sentences or self.strategy == "none":
            return AttributionOutcome(organized_text=transcript, method="none")

        if self.uses_llm:
            outcome = self._attribute_with_llm(sentences)
            if outcome is not None:
                return outcome

        try:
            utterances = self._label_heuristically(sentences)
        except AttributionLayerError as e:
            logger.error(f"[Attribution] all layers failed, returning raw transcript: {e}")
            return AttributionOutcome(organized_text=transcript, method="none")

        return AttributionOutcome(
            organized_text=format_blocks(utterances),
            utterances=utterances,
            method="heuristic",
            diarized=True,
        )

    # ==================== LLM layer ====================

    def _attribute_with_llm(self, sentences: List[str]) -> Optional[AttributionOutcome]:
        prefix, rest = self._split_prefix(sentences)
        try:
            raw = self.relabeler.relabel(" ".join(prefix), self.labels)
        except Exception as e:
            logger.warning(f"[Attribution] LLM layer failed, falling back to heuristics: {e}")
            return None

        utterances = parse_blocks(raw or "", self.labels)
        if not utterances:
            logger.warning("[Attribution] LLM output has no speaker markers, falling back to heuristics")
            return None

        method = "llm"
        if rest:
            method = "llm+heuristic"
            last = utterances[-1]
            seed = _HeuristicState(previous_role=self.labels.index(last.speaker), previous_text=last.text)
            try:
                utterances += self._label_heuristically(rest, seed)
            except AttributionLayerError as e:
                logger.warning(f"[Attribution] remainder left unlabeled: {e}")
                utterances += [Utterance(text=sentence) for sentence in rest]

        logger.info(f"[Attribution] LLM labeled {len(prefix)}/{len(sentences)} sentences")
        return AttributionOutcome(
            organized_text=format_blocks(utterances),
            utterances=utterances,
            method=method,
            diarized=True,
        )

    def _split_prefix(self, sentences: List[str]) -> tuple[List[str], List[str]]:
        """Longest run of whole sentences within llm_max_chars (at least one)"""
        total = 0
        for i, sentence in enumerate(sentences):
            total += len(sentence) + (1 if i else 0)
            if total > self.llm_max_chars and i > 0:
                return sentences[:i], sentences[i:]
        return sentences, []

    # ==================== Heuristic layers ====================

    def _label_heuristically(
        self, sentences: List[str], state: Optional[_HeuristicState] = None
    ) -> List[Utterance]:
        state = state or _HeuristicState()
        layers: List[tuple[str, Callable[[str, _HeuristicState], Optional[int]]]] = [
            ("pattern", self._pattern_layer),
            ("context", self._context_layer),
            ("balance", self._balance_layer),
        ]

        utterances = []
        for sentence in sentences:
            if is_placeholder(sentence):
                utterances.append(Utterance(text=sentence))
                continue

            role, source = None, None
            for name, layer in layers:
                try:
                    role = layer(sentence, state)
                except Exception as e:
                    logger.warning(f"[Attribution] {name} layer failed on {sentence[:40]!r}: {e}")
                    continue
                if role is not None:
                    source = name
                    break

            if role is None:
                raise AttributionLayerError("balance", f"no layer could label {sentence[:40]!r}")

            state.record(role, sentence)
            utterances.append(Utterance(text=sentence, speaker=self.labels[role], source=source))
        return utterances

    def _pattern_layer(self, sentence: str, state: _HeuristicState) -> Optional[int]:
        rule = match_rule(sentence, self.rules)
        return rule.role if rule else None

    @staticmethod
    def _context_layer(sentence: str, state: _HeuristicState) -> Optional[int]:
        if state.previous_role is not None and state.previous_text.rstrip().endswith("?"):
            return _other(state.previous_role)

        first = len(FIRST_PERSON_RE.findall(sentence))
        second = len(SECOND_PERSON_RE.findall(sentence))
        if first > second:
            return CLIENT
        if second > first:
            return INTERVIEWER
        return None

    @staticmethod
    def _balance_layer(sentence: str, state: _HeuristicState) -> Optional[int]:
        interviewer, client = state.counts
        if interviewer != client:
            return INTERVIEWER if interviewer < client else CLIENT
        if state.previous_role is None:
            return INTERVIEWER
        return _other(state.previous_role)
