"""Dictation session endpoints.

Handlers that read or change a session are coroutines, so they run one at a
time on the event loop and each dictation is applied to the session whole.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from clinote.dictation.session import MODE_FREE, MODE_SECTION, DictationSession
from clinote.dictation.store import list_consultations
from clinote.notes.sections import parse_section_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions")


class CreateSessionBody(BaseModel):
    clinician: str = ""
    site: str = ""
    mode: str = Field(default=MODE_SECTION, pattern=f"^({MODE_SECTION}|{MODE_FREE})$")
    active_section: str | None = None
    auto_section: bool = True
    analysis_enabled: bool | None = None


class DictationBody(BaseModel):
    text: str = ""


class SectionEditBody(BaseModel):
    text: str = ""


class PatientEditBody(BaseModel):
    name: str | None = None
    age: str | None = None
    sex: str | None = None
    document_id: str | None = None
    phone: str | None = None
    record_number: str | None = None
    consent: bool | None = None


class SessionOptionsBody(BaseModel):
    mode: str | None = Field(default=None, pattern=f"^({MODE_SECTION}|{MODE_FREE})$")
    active_section: str | None = None
    auto_section: bool | None = None
    analysis_enabled: bool | None = None


def _get_session(request: Request, session_id: str) -> DictationSession:
    session = request.app.state.sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


async def _analyze_and_save(request: Request, session: DictationSession):
    """Background task: remote analysis for the queued dictation, then persist."""
    try:
        await session.analyze()
        request.app.state.sessions.save(session)
    except Exception:
        logger.exception("[%s] Background analysis task failed", session.id)


@router.get("/")
def list_sessions(limit: int = Query(50, ge=1, le=500)):
    return {"sessions": list_consultations(limit)}


@router.post("/")
async def create_session(request: Request, body: CreateSessionBody):
    if body.active_section is not None and parse_section_key(body.active_section) is None:
        raise HTTPException(status_code=400, detail=f"Unknown section '{body.active_section}'")
    session = request.app.state.sessions.create(
        clinician=body.clinician,
        site=body.site,
        mode=body.mode,
        active_section=body.active_section,
        auto_section=body.auto_section,
        analysis_enabled=body.analysis_enabled,
    )
    return session.snapshot()


@router.get("/{session_id}")
async def get_session(request: Request, session_id: str):
    return _get_session(request, session_id).snapshot()


@router.patch("/{session_id}")
async def update_options(request: Request, session_id: str, body: SessionOptionsBody):
    session = _get_session(request, session_id)
    if body.active_section is not None:
        key = parse_section_key(body.active_section)
        if key is None:
            raise HTTPException(status_code=400, detail=f"Unknown section '{body.active_section}'")
        session.active_section = key
    if body.mode is not None:
        session.mode = body.mode
    if body.auto_section is not None:
        session.auto_section = body.auto_section
    if body.analysis_enabled is not None:
        session.analysis_enabled = body.analysis_enabled
    request.app.state.sessions.save(session)
    return session.snapshot()


@router.post("/{session_id}/dictation")
async def dictate(request: Request, session_id: str, body: DictationBody, background_tasks: BackgroundTasks):
    """Classify locally right away; the remote analysis runs after the response is sent."""
    session = _get_session(request, session_id)
    session.ingest(body.text)
    request.app.state.sessions.save(session)
    if session.analysis_enabled and session.queue.pending:
        background_tasks.add_task(_analyze_and_save, request, session)
    return session.snapshot()


@router.post("/{session_id}/stop")
async def stop(request: Request, session_id: str):
    session = _get_session(request, session_id)
    await session.stop()
    request.app.state.sessions.save(session)
    return session.snapshot()


@router.post("/{session_id}/reset")
async def reset(request: Request, session_id: str):
    session = _get_session(request, session_id)
    session.reset()
    request.app.state.sessions.save(session)
    return session.snapshot()


@router.put("/{session_id}/sections/{section}")
async def edit_section(request: Request, session_id: str, section: str, body: SectionEditBody):
    session = _get_session(request, session_id)
    key = parse_section_key(section)
    if key is None:
        raise HTTPException(status_code=400, detail=f"Unknown section '{section}'")
    session.edit_section(key, body.text)
    request.app.state.sessions.save(session)
    return session.snapshot()


@router.put("/{session_id}/patient")
async def edit_patient(request: Request, session_id: str, body: PatientEditBody):
    session = _get_session(request, session_id)
    fields = body.model_dump(exclude_none=True)
    consent = fields.pop("consent", None)
    if consent is not None:
        session.consent = consent
    session.edit_patient(fields)
    request.app.state.sessions.save(session)
    return session.snapshot()


@router.get("/{session_id}/report", response_class=PlainTextResponse)
async def report(request: Request, session_id: str):
    return _get_session(request, session_id).report()
