"""Plain-text draft consultation report.

Layout: header block (date, clinician, site, patient), one block per section
in SECTION_ORDER, ICD-10 reference list under the diagnosis block, then
alerts, open questions and the full transcript.
"""

from clinote.notes.sections import (
    SECTION_LABELS,
    SECTION_ORDER,
    NoteState,
    PatientProfile,
    SectionKey,
    Suggestion,
)
from clinote.notes.segmenter import normalize_text

EMPTY_MARK = "(sin registro)"


def _join(parts: list[str]) -> str:
    return " | ".join(p for p in parts if p)


def build_report(
    sections: NoteState,
    patient: PatientProfile | None = None,
    meta: dict | None = None,
    transcript: str = "",
    suggestions: list[Suggestion] | None = None,
    alerts: list[str] | None = None,
    questions: list[str] | None = None,
    analyzed_at: str | None = None,
) -> str:
    meta = meta or {}
    patient = patient or PatientProfile()
    lines = ["INFORME DE CONSULTA (Borrador)", "—" * 34]

    lines.append(f"Fecha/Hora: {meta.get('created_at', '')}")
    if meta.get("clinician"):
        lines.append(f"Médico: {meta['clinician']}")
    if meta.get("site"):
        lines.append(f"Sede: {meta['site']}")
    if patient.name:
        lines.append(f"Paciente: {patient.name}")
    demographics = _join([
        f"Edad: {patient.age}" if patient.age else "",
        f"Sexo: {patient.sex}" if patient.sex else "",
    ])
    if demographics:
        lines.append(demographics)
    identifiers = _join([
        f"Expediente: {patient.record_number}" if patient.record_number else "",
        f"DPI: {patient.document_id}" if patient.document_id else "",
        f"Tel: {patient.phone}" if patient.phone else "",
    ])
    if identifiers:
        lines.append(identifiers)
    if meta.get("consent"):
        lines.append("Consentimiento: Registrado")
    if analyzed_at:
        lines.append(f"Último análisis: {analyzed_at}")
    lines.append("")

    for key in SECTION_ORDER:
        text = normalize_text(sections.get(key, ""))
        lines.append(SECTION_LABELS[key].upper())
        lines.append(text or EMPTY_MARK)
        if key == SectionKey.DIAGNOSIS and suggestions:
            lines.append("")
            lines.append("SUGERENCIAS CIE-10 (REFERENCIA)")
            for s in suggestions:
                lines.append(f"- {s.code} — {s.title}")
            lines.append("Nota: Sugerencias automáticas; validar con criterio clínico.")
        lines.append("")

    if alerts:
        lines.append("ALERTAS / VALIDACIONES")
        lines.extend(f"- {a}" for a in alerts)
        lines.append("")

    if questions:
        lines.append("PREGUNTAS PARA ACLARAR")
        lines.extend(f"- {q}" for q in questions)
        lines.append("")

    transcript = normalize_text(transcript)
    if transcript:
        lines.append("TRANSCRIPCIÓN COMPLETA")
        lines.append(transcript)

    return "\n".join(lines).strip()
