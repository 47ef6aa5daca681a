"""Load/save dictation sessions to SQLite and keep the live ones in memory."""

import json
import logging

from clinote.config import settings
from clinote.config_store import get_config_store
from clinote.database import SessionLocal, get_db
from clinote.dictation.analysis_client import AnalysisClient
from clinote.dictation.session import DictationSession
from clinote.models import Consultation, TimelineEvent
from clinote.notes.sections import SectionKey, TimelineEntry, parse_section_key

logger = logging.getLogger(__name__)


def _session_options() -> dict:
    """Tunables shared by every session, read from the layered config."""
    store = get_config_store()
    analysis = store.get_analysis_config()
    return {
        "min_split_offset": settings.mixed_split_min_offset,
        "max_questions": store.get_int("max_questions", settings.max_questions),
        "max_suggestions": store.get_int("max_suggestions", settings.max_suggestions),
        "timeline_window": analysis.timeline_window,
        "transcript_window": analysis.transcript_window,
        "client": AnalysisClient(analysis) if analysis.enabled else None,
    }


def save_session(session: DictationSession):
    with get_db() as db:
        row = db.query(Consultation).filter_by(id=session.id).first()
        if row is None:
            row = Consultation(id=session.id, created_at=session.created_at)
            db.add(row)
        row.clinician = session.clinician
        row.site = session.site
        row.state_json = json.dumps(session.to_dict(), ensure_ascii=False)

        # Timeline rows are append-only: insert only entries past the stored count
        stored = db.query(TimelineEvent).filter_by(consultation_id=session.id).count()
        for position, entry in enumerate(session.timeline[stored:], start=stored):
            db.add(TimelineEvent(
                consultation_id=session.id,
                position=position,
                recorded_at=entry.timestamp,
                section=entry.section,
                text=entry.text,
            ))


def load_session(session_id: str) -> DictationSession | None:
    with SessionLocal() as db:
        row = db.query(Consultation).filter_by(id=session_id).first()
        if row is None:
            return None
        events = (
            db.query(TimelineEvent)
            .filter_by(consultation_id=session_id)
            .order_by(TimelineEvent.position.asc())
            .all()
        )
        timeline = [
            TimelineEntry(timestamp=e.recorded_at, section=e.section, text=e.text)
            for e in events
        ]
        data = json.loads(row.state_json or "{}")
    return DictationSession.from_dict(session_id, data, timeline, **_session_options())


def list_consultations(limit: int = 50) -> list[dict]:
    with SessionLocal() as db:
        rows = (
            db.query(Consultation)
            .order_by(Consultation.updated_at.desc())
            .limit(limit)
            .all()
        )
        return [
            {
                "id": r.id,
                "clinician": r.clinician,
                "site": r.site,
                "created_at": r.created_at.isoformat() if r.created_at else None,
                "updated_at": r.updated_at.isoformat() if r.updated_at else None,
            }
            for r in rows
        ]


class SessionRegistry:
    """Live sessions by id. Sessions not in memory are loaded from SQLite on first use."""

    def __init__(self):
        self._live: dict[str, DictationSession] = {}

    def create(
        self,
        clinician: str = "",
        site: str = "",
        mode: str = "section",
        active_section: str | None = None,
        auto_section: bool = True,
        analysis_enabled: bool | None = None,
    ) -> DictationSession:
        options = _session_options()
        if analysis_enabled is None:
            analysis_enabled = options["client"] is not None
        session = DictationSession(
            clinician=clinician,
            site=site,
            mode=mode,
            active_section=(
                parse_section_key(active_section or settings.default_active_section)
                or SectionKey.CHIEF_COMPLAINT
            ),
            auto_section=auto_section,
            analysis_enabled=analysis_enabled,
            **options,
        )
        self._live[session.id] = session
        save_session(session)
        logger.info("Created dictation session %s (analysis %s)", session.id,
                    "on" if session.analysis_enabled else "off")
        return session

    def get(self, session_id: str) -> DictationSession | None:
        session = self._live.get(session_id)
        if session is None:
            session = load_session(session_id)
            if session is not None:
                self._live[session_id] = session
        return session

    def save(self, session: DictationSession):
        save_session(session)
