"""Keyword-vote section classifier for a single dictated segment.

Every rule whose patterns match adds its weight to one section. The section
with the strictly highest total wins; ties keep the section that comes first
in SECTION_ORDER. A segment that scores nothing goes to the fallback section.
Rule order and weights are load-bearing for ambiguous dictation.
"""

import re
from dataclasses import dataclass

from clinote.notes.sections import SECTION_ORDER, SectionKey


@dataclass(frozen=True)
class BucketRule:
    name: str
    key: SectionKey
    weight: int
    patterns: tuple[re.Pattern, ...]

    def matches(self, segment: str) -> bool:
        return any(p.search(segment) for p in self.patterns)


def _rx(*patterns: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


MEDICATION_NAMES = [
    "amoxicilina", "azitromicina", "ibuprofeno", "paracetamol", "acetaminof[eé]n",
    "naproxeno", "omeprazol", "metformina", "loratadina", "salbutamol", "prednisona",
    "diclofenaco",
]

MEDICATION_PATTERN = re.compile(r'\b(' + '|'.join(MEDICATION_NAMES) + r')\b', re.IGNORECASE)

BUCKET_RULES: list[BucketRule] = [
    BucketRule("diagnosis", SectionKey.DIAGNOSIS, 6, _rx(
        r'diagn[oó]s', r'\bdx\b', r'impresi[oó]n', r'compatible\s+con', r'se\s+concluye',
    )),
    # Medication names and prescription phrasing vote separately so both can fire
    BucketRule("medication_name", SectionKey.PRESCRIPTION, 6, (MEDICATION_PATTERN,)),
    BucketRule("prescription_phrasing", SectionKey.PRESCRIPTION, 6, _rx(
        r'tratamiento', r'receta', r'prescrib', r'se\s+le\s+deja', r'se\s+deja', r'se\s+indica',
        r'medic',
        r'\b\d+\s*mg\b',
        r'\bcada\s*\d+\s*horas?\b',
        r'\bpor\s*\d+\s*(?:d[ií]as?|semanas?)\b',
    )),
    BucketRule("vitals", SectionKey.VITALS, 6, _rx(
        r'\bta\b', r'\bpa\b', r'presi[oó]n', r'mmhg', r'\bfc\b', r'\bfr\b', r'pulso',
        r'\blpm\b', r'\brpm\b', r'satur', r'\bsat\b', r'spo2', r'temper',
        r'\b\d{2,3}\s*/\s*\d{2,3}\b',
    )),
    BucketRule("history", SectionKey.HISTORY, 4, _rx(
        r'anteced', r'alerg', r'hipert', r'diab', r'cirug', r'asma',
        r'medicaci[oó]n\s+cr[oó]nica',
    )),
    BucketRule("symptoms", SectionKey.CHIEF_COMPLAINT, 4, _rx(
        r'dolor', r'fiebre', r'v[oó]mit', r'n[aá]use', r'diarre', r'\btos\b', r'gargant',
        r'cefale', r'mareo', r'cansancio', r'deshidrat', r'inicio\s+de', r'desde\s+hace',
        r'durante',
    )),
    BucketRule("studies", SectionKey.STUDIES, 4, _rx(
        r'laboratorio', r'rayos', r'\brx\b', r'ultra', r'examen', r'prueba',
    )),
    BucketRule("plan", SectionKey.PLAN, 3, _rx(
        r'reposo', r'hidrat', r'control', r'seguimiento', r'retornar', r'cita',
    )),
    BucketRule("referrals", SectionKey.REFERRALS, 3, _rx(
        r'interconsulta', r'refer', r'especialista',
    )),
    # Weakest signal: descriptive wording of the clinical picture
    BucketRule("impression", SectionKey.IMPRESSION, 2, _rx(
        r'cuadro', r'compatible', r'sugiere', r'probable',
    )),
]


def score_segment(segment: str, rules: list[BucketRule] | None = None) -> dict[SectionKey, int]:
    scores = {key: 0 for key in SECTION_ORDER}
    for rule in rules or BUCKET_RULES:
        if rule.matches(segment):
            scores[rule.key] += rule.weight
    return scores


def best_bucket(
    segment: str,
    fallback: SectionKey = SectionKey.IMPRESSION,
    rules: list[BucketRule] | None = None,
) -> SectionKey:
    scores = score_segment(segment, rules)
    best = fallback
    best_score = 0
    for key in SECTION_ORDER:
        if scores[key] > best_score:
            best_score = scores[key]
            best = key
    return best
