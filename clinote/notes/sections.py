"""Clinical note sections, patient profile and the small value types shared by the pipeline."""

import datetime
from enum import Enum

from pydantic import BaseModel


class SectionKey(str, Enum):
    CHIEF_COMPLAINT = "chief_complaint"
    HISTORY = "history"
    IMPRESSION = "impression"
    VITALS = "vitals"
    DIAGNOSIS = "diagnosis"
    PRESCRIPTION = "prescription"
    PLAN = "plan"
    STUDIES = "studies"
    REFERRALS = "referrals"
    AGREEMENTS = "agreements"


# Report order. History precedes impression, impression precedes vitals, etc.
SECTION_ORDER: list[SectionKey] = list(SectionKey)

SECTION_LABELS = {
    SectionKey.CHIEF_COMPLAINT: "Motivo de la consulta",
    SectionKey.HISTORY: "Antecedentes",
    SectionKey.IMPRESSION: "Impresión clínica",
    SectionKey.VITALS: "Signos vitales",
    SectionKey.DIAGNOSIS: "Diagnóstico",
    SectionKey.PRESCRIPTION: "Prescripción / Receta",
    SectionKey.PLAN: "Plan / Indicaciones",
    SectionKey.STUDIES: "Estudios solicitados",
    SectionKey.REFERRALS: "Referencias / Interconsultas",
    SectionKey.AGREEMENTS: "Acuerdos / Próximos pasos",
}

# Keys used by the first browser prototype and its analyzer endpoint
_LEGACY_KEYS = {
    "motivo": SectionKey.CHIEF_COMPLAINT,
    "antecedentes": SectionKey.HISTORY,
    "impresion": SectionKey.IMPRESSION,
    "signos": SectionKey.VITALS,
    "diagnostico": SectionKey.DIAGNOSIS,
    "prescripcion": SectionKey.PRESCRIPTION,
    "plan": SectionKey.PLAN,
    "estudios": SectionKey.STUDIES,
    "referencias": SectionKey.REFERRALS,
    "acuerdos": SectionKey.AGREEMENTS,
}

# Sections counted by the completeness indicator
REQUIRED_SECTIONS = [
    SectionKey.CHIEF_COMPLAINT,
    SectionKey.HISTORY,
    SectionKey.IMPRESSION,
    SectionKey.VITALS,
    SectionKey.DIAGNOSIS,
    SectionKey.PRESCRIPTION,
]

NoteState = dict[SectionKey, str]


def parse_section_key(value: str | SectionKey | None) -> SectionKey | None:
    """Resolve a canonical or legacy key. Returns None for unknown keys."""
    if value is None:
        return None
    if isinstance(value, SectionKey):
        return value
    name = str(value).strip().lower().replace("-", "_")
    try:
        return SectionKey(name)
    except ValueError:
        return _LEGACY_KEYS.get(name)


def empty_note() -> NoteState:
    return {key: "" for key in SECTION_ORDER}


def coerce_note(data: dict | None) -> NoteState:
    """Build a full NoteState from a loosely keyed mapping (API payloads, stored JSON)."""
    note = empty_note()
    for raw_key, value in (data or {}).items():
        key = parse_section_key(raw_key)
        if key is None:
            continue
        note[key] = str(value or "")
    return note


def note_to_dict(note: NoteState) -> dict[str, str]:
    return {key.value: note.get(key, "") for key in SECTION_ORDER}


class PatientProfile(BaseModel):
    """Sparse patient identity record. Empty string means not yet known."""
    name: str = ""
    age: str = ""
    sex: str = ""
    document_id: str = ""  # DPI / identity document
    phone: str = ""
    record_number: str = ""  # expediente / chart number

    def enrich(self, fields: dict[str, str]) -> list[str]:
        """First-write-wins merge of auto-extracted fields. Returns the fields that were set."""
        updated = []
        for name, value in fields.items():
            if name not in type(self).model_fields or not value:
                continue
            if getattr(self, name):
                continue
            setattr(self, name, value)
            updated.append(name)
        return updated

    def edit(self, fields: dict[str, str]) -> None:
        """Explicit edit: always overwrites."""
        for name, value in fields.items():
            if name in type(self).model_fields:
                setattr(self, name, (value or "").strip())


class Suggestion(BaseModel):
    code: str
    title: str


class TimelineEntry(BaseModel):
    timestamp: datetime.datetime
    section: str  # SectionKey value
    text: str
