"""ICD-10 code suggestions from symptom wording.

Reference only: suggestions are surfaced next to the note and never written
into the diagnosis text.
"""

import re
from dataclasses import dataclass

from clinote.notes.sections import NoteState, SectionKey, Suggestion
from clinote.notes.segmenter import normalize_text

DEFAULT_MAX_SUGGESTIONS = 5


@dataclass(frozen=True)
class SuggestionRule:
    name: str
    pattern: re.Pattern
    suggestions: tuple[Suggestion, ...]


def _rule(name: str, pattern: str, *pairs: tuple[str, str]) -> SuggestionRule:
    return SuggestionRule(
        name=name,
        pattern=re.compile(pattern, re.IGNORECASE),
        suggestions=tuple(Suggestion(code=code, title=title) for code, title in pairs),
    )


SUGGESTION_RULES: list[SuggestionRule] = [
    _rule(
        "headache", r'dolor\s+de\s+cabeza|cefalea|migra[ñn]?a|jaqueca',
        ("R51", "Cefalea"),
        ("G43.9", "Migraña, no especificada"),
        ("G44.2", "Cefalea tensional"),
        ("J01.9", "Sinusitis aguda, no especificada"),
    ),
    _rule(
        "sore_throat", r'dolor\s+de\s+garganta|odinofagia|faringitis|amigdalitis',
        ("J02.9", "Faringitis aguda, no especificada"),
        ("J03.9", "Amigdalitis aguda, no especificada"),
        ("J06.9", "Infección aguda de vías respiratorias superiores, no especificada"),
    ),
    _rule(
        "fever", r'fiebre|febril|temperatura\s+alta',
        ("R50.9", "Fiebre, no especificada"),
        ("J06.9", "Infección aguda de vías respiratorias superiores, no especificada"),
        ("A09", "Diarrea y gastroenteritis de presunto origen infeccioso"),
    ),
    _rule(
        "vomiting", r'v[oó]mito|n[aá]usea|emesis',
        ("R11", "Náuseas y vómitos"),
        ("A09", "Diarrea y gastroenteritis de presunto origen infeccioso"),
        ("K52.9", "Gastroenteritis y colitis no infecciosa, no especificada"),
    ),
    _rule(
        "diarrhea", r'diarrea|evacuaciones\s+l[ií]quidas',
        ("A09", "Diarrea y gastroenteritis de presunto origen infeccioso"),
        ("K52.9", "Gastroenteritis y colitis no infecciosa, no especificada"),
        ("E86", "Depleción del volumen"),
    ),
    _rule(
        "cough", r'\btos\b',
        ("R05", "Tos"),
        ("J20.9", "Bronquitis aguda, no especificada"),
        ("J06.9", "Infección aguda de vías respiratorias superiores, no especificada"),
    ),
]

# Sections that feed the suggestion context, in this order, before the transcript
_CONTEXT_SECTIONS = [
    SectionKey.CHIEF_COMPLAINT,
    SectionKey.HISTORY,
    SectionKey.IMPRESSION,
    SectionKey.VITALS,
    SectionKey.DIAGNOSIS,
    SectionKey.PRESCRIPTION,
]


def suggestion_context(state: NoteState, transcript: str = "") -> str:
    parts = [state.get(key, "") for key in _CONTEXT_SECTIONS]
    parts.append(transcript or "")
    return normalize_text(" ".join(parts))


def derive_suggestions(
    text: str,
    max_results: int = DEFAULT_MAX_SUGGESTIONS,
    rules: list[SuggestionRule] | None = None,
) -> list[Suggestion]:
    context = normalize_text(text)
    if not context:
        return []
    out: list[Suggestion] = []
    seen = set()
    for rule in rules or SUGGESTION_RULES:
        if not rule.pattern.search(context):
            continue
        for suggestion in rule.suggestions:
            if suggestion.code not in seen:
                seen.add(suggestion.code)
                out.append(suggestion)
    return out[:max_results]
