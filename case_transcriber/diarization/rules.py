"""
Lexical speaker rules for Portuguese intake calls between a closer and a client

Rules are evaluated top to bottom and the first match wins.
"""
import re
from dataclasses import dataclass
from typing import Optional, Sequence

INTERVIEWER = 0
CLIENT = 1


@dataclass(frozen=True)
class SpeakerRule:
    name: str
    pattern: re.Pattern
    role: int

    def matches(self, sentence: str) -> bool:
        return bool(self.pattern.search(sentence))


def _rule(name: str, regex: str, role: int) -> SpeakerRule:
    return SpeakerRule(name=name, pattern=re.compile(regex, re.IGNORECASE), role=role)


SPEAKER_RULES: tuple[SpeakerRule, ...] = (
    _rule(
        "interrogative_opening",
        r"^(como|qual|quais|quando|onde|quanto|quantos|quantas|quem|por\s+que|o\s+que|"
        r"você|vocês|o\s+senhor|a\s+senhora)\b",
        INTERVIEWER,
    ),
    _rule(
        "closer_prompt",
        r"^(me\s+(conta|conte|fala|fale|diz|diga|explica|explique)|pode\s+me|poderia|"
        r"gostaria\s+que|preciso\s+que|vamos|vou\s+(te|lhe)|certo|perfeito|entendi|ok|"
        r"tá\s+bom|muito\s+bem|bom\s+dia|boa\s+tarde|boa\s+noite)\b",
        INTERVIEWER,
    ),
    _rule(
        "first_person_opening",
        r"^(eu|meu|minha|meus|minhas|a\s+gente|nós|comigo)\b",
        CLIENT,
    ),
    _rule(
        "first_person_events",
        r"\beu\s+(fui|fiquei|trabalhei|trabalhava|estava|tive|sofri|recebi|pedi|assinei|saí)\b",
        CLIENT,
    ),
    _rule(
        "short_answer",
        r"^(sim|não|isso|exatamente|claro|uhum|aham|é\s+isso|com\s+certeza)\b",
        CLIENT,
    ),
    _rule(
        "case_vocabulary",
        r"\b(processo|ação\s+judicial|advogad[oa]s?|honorários?|procuração|documentação|"
        r"indenização|audiência|prazo|escritório)\b",
        INTERVIEWER,
    ),
    _rule("question_mark", r"\?\s*$", INTERVIEWER),
)

FIRST_PERSON_RE = re.compile(r"\b(eu|meu|minha|meus|minhas|comigo|mim)\b", re.IGNORECASE)
SECOND_PERSON_RE = re.compile(
    r"\b(você|vocês|seu|sua|seus|suas|te|lhe|o\s+senhor|a\s+senhora)\b", re.IGNORECASE
)


def match_rule(sentence: str, rules: Sequence[SpeakerRule] = SPEAKER_RULES) -> Optional[SpeakerRule]:
    for rule in rules:
        if rule.matches(sentence):
            return rule
    return None
