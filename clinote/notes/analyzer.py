"""Server-side analysis of a batch of dictated text.

This is the heuristic behind ``POST /api/clinote/analyze``. It works on the
whole batch (no segmentation) and leans on the field extractors: vitals,
diagnosis and prescription statements are pulled out wherever they appear,
and anything unrecognised lands in the chief complaint, or the impression
once a complaint exists.
"""

import logging
import re
from dataclasses import dataclass, field

from clinote.notes.extractors import (
    extract_diagnosis,
    extract_medications_loose,
    extract_prescription,
    extract_vitals,
)
from clinote.notes.merge import merge_into
from clinote.notes.questions import dedupe_questions
from clinote.notes.sections import NoteState, SectionKey, empty_note
from clinote.notes.segmenter import detect_section_header, normalize_text

logger = logging.getLogger(__name__)

MAX_CARRIED_ITEMS = 20

Q_CONFIRM_DIAGNOSIS = "Confirmar diagnóstico principal y descartar signos de alarma."

_SYMPTOMS = re.compile(r'dolor|fiebre|v[oó]mit|diarrea|\btos\b|cefalea|mareo', re.IGNORECASE)


@dataclass
class AnalysisResult:
    sections: NoteState
    alerts: list[str] = field(default_factory=list)
    questions: list[str] = field(default_factory=list)


def analyze_delta(
    sections: NoteState | None,
    delta_text: str,
    alerts: list[str] | None = None,
    questions: list[str] | None = None,
) -> AnalysisResult:
    state = empty_note()
    state.update(sections or {})
    alerts = list(alerts or [])[:MAX_CARRIED_ITEMS]
    questions = list(questions or [])[:MAX_CARRIED_ITEMS]

    delta = normalize_text(delta_text)
    if not delta:
        return AnalysisResult(state, alerts, questions)

    header = detect_section_header(delta)
    if header.key is not None:
        merge_into(state, header.key, header.text)
    else:
        vitals = extract_vitals(delta)
        if vitals:
            merge_into(state, SectionKey.VITALS, vitals)

        diagnosis = extract_diagnosis(delta)
        if diagnosis:
            merge_into(state, SectionKey.DIAGNOSIS, diagnosis)

        prescription = extract_prescription(delta)
        if prescription:
            merge_into(state, SectionKey.PRESCRIPTION, prescription)

        medications = extract_medications_loose(delta)
        if medications and not prescription:
            merge_into(state, SectionKey.PRESCRIPTION, medications)

        if not (vitals or diagnosis or prescription or medications):
            target = SectionKey.IMPRESSION if state[SectionKey.CHIEF_COMPLAINT].strip() else SectionKey.CHIEF_COMPLAINT
            merge_into(state, target, delta)

    if not state[SectionKey.DIAGNOSIS].strip() and _SYMPTOMS.search(delta):
        questions.append(Q_CONFIRM_DIAGNOSIS)

    logger.debug("Analyzed %d chars of dictation", len(delta))
    return AnalysisResult(state, alerts, dedupe_questions(questions, MAX_CARRIED_ITEMS + 1))
