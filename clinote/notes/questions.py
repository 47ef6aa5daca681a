"""Clarifying follow-up questions derived from the current note."""

import re

from clinote.notes.sections import NoteState, SectionKey

DEFAULT_MAX_QUESTIONS = 6

Q_VITALS = "¿Se registraron los signos vitales?"
Q_DOSAGE = "La prescripción no indica dosis, frecuencia o duración; por favor especificar."
Q_DIAGNOSIS = "¿Cuál es el diagnóstico final?"
Q_HYDRATION = "Evaluar estado de hidratación y explicar signos de alarma al paciente."

_DOSAGE = re.compile(
    r'\b\d+(?:[.,]\d+)?\s*(?:mg|g|mcg|ml|ui|gotas?|tabletas?|c[aá]psulas?|sobres?|puffs?)\b'
    r'|\bcada\s*\d+\s*(?:horas?|h)\b'
    r'|\bpor\s*\d+\s*(?:d[ií]as?|semanas?|meses?)\b'
    r'|\b(?:una|dos|tres)\s+veces\s+al\s+d[ií]a\b',
    re.IGNORECASE,
)
_DEHYDRATION = re.compile(r'deshidrat|v[oó]mit|diarre', re.IGNORECASE)


def build_questions(state: NoteState, limit: int = DEFAULT_MAX_QUESTIONS) -> list[str]:
    chief = state.get(SectionKey.CHIEF_COMPLAINT, "").strip()
    vitals = state.get(SectionKey.VITALS, "").strip()
    prescription = state.get(SectionKey.PRESCRIPTION, "").strip()
    diagnosis = state.get(SectionKey.DIAGNOSIS, "").strip()

    questions = []
    if chief and not vitals:
        questions.append(Q_VITALS)
    if prescription and not _DOSAGE.search(prescription):
        questions.append(Q_DOSAGE)
    if not diagnosis:
        questions.append(Q_DIAGNOSIS)
    if chief and _DEHYDRATION.search(chief):
        questions.append(Q_HYDRATION)

    return dedupe_questions(questions, limit)


def dedupe_questions(questions: list[str], limit: int = DEFAULT_MAX_QUESTIONS) -> list[str]:
    seen = []
    for q in questions:
        q = (q or "").strip()
        if q and q not in seen:
            seen.append(q)
    return seen[:limit]
