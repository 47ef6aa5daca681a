"""Stateless JSON endpoints over the classification core, plus the analyzer endpoint."""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from clinote.config import settings
from clinote.config_store import get_config_store
from clinote.notes.analyzer import analyze_delta
from clinote.notes.classifier import classify_delta
from clinote.notes.extractors import extract_patient_fields
from clinote.notes.questions import build_questions
from clinote.notes.sections import SectionKey, coerce_note, note_to_dict, parse_section_key
from clinote.notes.suggestions import derive_suggestions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class ClassifyBody(BaseModel):
    delta: str = ""
    sections: dict[str, str] = Field(default_factory=dict)
    fallback: str = SectionKey.IMPRESSION.value


class TextBody(BaseModel):
    text: str = ""


class SectionsBody(BaseModel):
    sections: dict[str, str] = Field(default_factory=dict)


class SuggestBody(BaseModel):
    text: str = ""
    max: int | None = Field(default=None, ge=1, le=20)


class AnalysisCurrent(BaseModel):
    sections: dict[str, str] = Field(default_factory=dict)
    alerts: list[str] = Field(default_factory=list)
    questions: list[str] = Field(default_factory=list)


class AnalysisInput(BaseModel):
    delta_text: str = ""
    timeline_context: str = ""
    transcript_context: str = ""


class AnalyzeBody(BaseModel):
    meta: dict = Field(default_factory=dict)
    current: AnalysisCurrent = Field(default_factory=AnalysisCurrent)
    input: AnalysisInput = Field(default_factory=AnalysisInput)


def _section_or_400(value: str) -> SectionKey:
    key = parse_section_key(value)
    if key is None:
        raise HTTPException(status_code=400, detail=f"Unknown section '{value}'")
    return key


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/classify")
def classify(body: ClassifyBody):
    fallback = _section_or_400(body.fallback)
    result = classify_delta(
        body.delta,
        coerce_note(body.sections),
        fallback,
        min_split_offset=settings.mixed_split_min_offset,
    )
    return {
        "sections": note_to_dict(result.next_state),
        "timeline": [e.model_dump(mode="json") for e in result.timeline_entries],
    }


@router.post("/patient-fields")
def patient_fields(body: TextBody):
    return extract_patient_fields(body.text)


@router.post("/questions")
def questions(body: SectionsBody):
    limit = get_config_store().get_int("max_questions", settings.max_questions)
    return {"questions": build_questions(coerce_note(body.sections), limit)}


@router.post("/suggestions")
def suggestions(body: SuggestBody):
    limit = body.max or get_config_store().get_int("max_suggestions", settings.max_suggestions)
    return {"suggestions": [s.model_dump() for s in derive_suggestions(body.text, limit)]}


@router.post("/clinote/analyze")
def analyze(body: AnalyzeBody):
    result = analyze_delta(
        coerce_note(body.current.sections),
        body.input.delta_text,
        alerts=body.current.alerts,
        questions=body.current.questions,
    )
    return {
        "sections": note_to_dict(result.sections),
        "alerts": result.alerts,
        "questions": result.questions,
    }
