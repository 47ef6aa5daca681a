"""Dictation session: all mutable state of one consultation, passed around explicitly.

A session keeps two note states. ``sections`` is filled by local
classification only. ``ai_sections`` gets the same local classification
immediately and is later superseded by whatever the remote analyzer returns.
Renderers read whichever one is active (see ``effective_sections``).
"""

import datetime
import logging
import uuid

from clinote.dictation.analysis_client import AnalysisClient, AnalysisResponse, build_payload
from clinote.dictation.queue import AnalysisQueue
from clinote.notes.classifier import DeltaResult, classify_delta
from clinote.notes.extractors import extract_patient_fields
from clinote.notes.questions import build_questions, dedupe_questions
from clinote.notes.report import build_report
from clinote.notes.sections import (
    REQUIRED_SECTIONS,
    NoteState,
    PatientProfile,
    SectionKey,
    Suggestion,
    TimelineEntry,
    coerce_note,
    empty_note,
    note_to_dict,
    parse_section_key,
)
from clinote.notes.segmenter import DEFAULT_SPLIT_MIN_OFFSET, detect_section_header, normalize_text
from clinote.notes.suggestions import derive_suggestions, suggestion_context

logger = logging.getLogger(__name__)

MODE_SECTION = "section"
MODE_FREE = "free"


class DictationSession:
    def __init__(
        self,
        session_id: str | None = None,
        clinician: str = "",
        site: str = "",
        mode: str = MODE_SECTION,
        active_section: SectionKey = SectionKey.CHIEF_COMPLAINT,
        auto_section: bool = True,
        analysis_enabled: bool = True,
        min_split_offset: int = DEFAULT_SPLIT_MIN_OFFSET,
        max_questions: int = 6,
        max_suggestions: int = 6,
        timeline_window: int = 25,
        transcript_window: int = 5000,
        client: AnalysisClient | None = None,
    ):
        self.id = session_id or uuid.uuid4().hex
        self.clinician = clinician
        self.site = site
        self.consent = False
        self.created_at = datetime.datetime.now()

        self.mode = mode
        self.active_section = active_section
        self.auto_section = auto_section
        self.min_split_offset = min_split_offset
        self.max_questions = max_questions
        self.max_suggestions = max_suggestions
        self.timeline_window = timeline_window
        self.transcript_window = transcript_window

        self.sections: NoteState = empty_note()
        self.ai_sections: NoteState = empty_note()
        self.alerts: list[str] = []
        self.ai_questions: list[str] = []
        self.analyzed_at: datetime.datetime | None = None

        self.patient = PatientProfile()
        self.transcript = ""
        self.timeline: list[TimelineEntry] = []

        self.client = client
        self.queue = AnalysisQueue(enabled=analysis_enabled)

    # ------------------------------------------------------------------
    # Dictation
    # ------------------------------------------------------------------

    @property
    def analysis_enabled(self) -> bool:
        return self.queue.enabled

    @analysis_enabled.setter
    def analysis_enabled(self, value: bool):
        self.queue.enabled = value

    @property
    def fallback_key(self) -> SectionKey:
        return self.active_section if self.mode == MODE_SECTION else SectionKey.IMPRESSION

    def ingest(self, text: str) -> DeltaResult | None:
        """Process one final dictation chunk. Blank text is ignored."""
        chunk = normalize_text(text)
        if not chunk:
            return None

        self.transcript = normalize_text(f"{self.transcript} {chunk}")
        fallback = self.fallback_key

        result = classify_delta(chunk, self.sections, fallback, min_split_offset=self.min_split_offset)
        self.sections = result.next_state
        self.timeline.extend(result.timeline_entries)

        if self.analysis_enabled:
            self.ai_sections = classify_delta(
                chunk, self.ai_sections, fallback, min_split_offset=self.min_split_offset,
            ).next_state

        if self.mode == MODE_SECTION and self.auto_section:
            header = detect_section_header(chunk)
            if header.key is not None:
                self.active_section = header.key

        enriched = self.patient.enrich(extract_patient_fields(chunk))
        if enriched:
            logger.info("[%s] Patient fields captured from dictation: %s", self.id, ", ".join(enriched))

        self.queue.enqueue(chunk)
        return result

    async def _send(self, batch: str) -> AnalysisResponse:
        recent = self.timeline[-self.timeline_window:] if self.timeline_window else []
        payload = build_payload(
            sections=self.ai_sections,
            alerts=self.alerts,
            questions=self.ai_questions,
            delta_text=batch,
            timeline_context=" ".join(e.text for e in recent),
            transcript_context=self.transcript[-self.transcript_window:],
            meta=self.meta(),
        )
        return await self.client.analyze(payload)

    async def analyze(self) -> AnalysisResponse | None:
        """Send queued text to the remote analyzer and apply its answer."""
        if self.client is None:
            return None
        response = await self.queue.flush(self._send)
        if response is not None:
            self._apply_analysis(response)
        return response

    async def stop(self) -> AnalysisResponse | None:
        if self.client is None:
            return None
        response = await self.queue.stop(self._send)
        if response is not None:
            self._apply_analysis(response)
        return response

    def _apply_analysis(self, response: AnalysisResponse):
        self.ai_sections.update(response.sections)
        if response.alerts is not None:
            self.alerts = response.alerts
        if response.questions is not None:
            self.ai_questions = response.questions
        self.analyzed_at = datetime.datetime.now()
        logger.info("[%s] Applied remote analysis (%dms)", self.id, response.processing_duration_ms)

    # ------------------------------------------------------------------
    # Explicit edits
    # ------------------------------------------------------------------

    @property
    def effective_sections(self) -> NoteState:
        return self.ai_sections if self.analysis_enabled else self.sections

    def edit_section(self, key: SectionKey, text: str):
        if self.analysis_enabled:
            self.ai_sections[key] = text or ""
        else:
            self.sections[key] = text or ""

    def edit_patient(self, fields: dict[str, str]):
        self.patient.edit(fields)

    def reset(self):
        """Clear note, patient and analysis state. The timeline is kept."""
        self.sections = empty_note()
        self.ai_sections = empty_note()
        self.alerts = []
        self.ai_questions = []
        self.analyzed_at = None
        self.patient = PatientProfile()
        self.transcript = ""
        self.queue.clear()
        logger.info("[%s] Session reset", self.id)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def questions(self) -> list[str]:
        local = build_questions(self.effective_sections, self.max_questions)
        remote = self.ai_questions if self.analysis_enabled else []
        return dedupe_questions(local + remote, self.max_questions)

    def suggestions(self) -> list[Suggestion]:
        context = suggestion_context(self.effective_sections, self.transcript)
        return derive_suggestions(context, self.max_suggestions)

    def completeness(self) -> dict[str, int]:
        sections = self.effective_sections
        done = sum(1 for key in REQUIRED_SECTIONS if sections.get(key, "").strip())
        return {"done": done, "total": len(REQUIRED_SECTIONS)}

    def meta(self) -> dict:
        return {
            "clinician": self.clinician,
            "site": self.site,
            "consent": self.consent,
            "created_at": self.created_at.strftime("%Y-%m-%d %H:%M"),
        }

    def report(self) -> str:
        return build_report(
            self.effective_sections,
            patient=self.patient,
            meta=self.meta(),
            transcript=self.transcript,
            suggestions=self.suggestions(),
            alerts=self.alerts if self.analysis_enabled else None,
            questions=self.questions(),
            analyzed_at=self.analyzed_at.strftime("%Y-%m-%d %H:%M") if self.analyzed_at else None,
        )

    def snapshot(self) -> dict:
        """Plain structured data for renderers and the HTTP API."""
        return {
            "id": self.id,
            "meta": self.meta(),
            "mode": self.mode,
            "active_section": self.active_section.value,
            "auto_section": self.auto_section,
            "analysis_enabled": self.analysis_enabled,
            "analysis_pending": len(self.queue.pending),
            "analysis_error": self.queue.last_error,
            "analyzed_at": self.analyzed_at.isoformat() if self.analyzed_at else None,
            "patient": self.patient.model_dump(),
            "sections": note_to_dict(self.effective_sections),
            "questions": self.questions(),
            "alerts": list(self.alerts),
            "suggestions": [s.model_dump() for s in self.suggestions()],
            "completeness": self.completeness(),
            "transcript": self.transcript,
            "timeline": [e.model_dump(mode="json") for e in self.timeline],
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Serializable state, without the timeline (stored as separate rows)."""
        return {
            "clinician": self.clinician,
            "site": self.site,
            "consent": self.consent,
            "created_at": self.created_at.isoformat(),
            "mode": self.mode,
            "active_section": self.active_section.value,
            "auto_section": self.auto_section,
            "analysis_enabled": self.analysis_enabled,
            "sections": note_to_dict(self.sections),
            "ai_sections": note_to_dict(self.ai_sections),
            "alerts": self.alerts,
            "ai_questions": self.ai_questions,
            "analyzed_at": self.analyzed_at.isoformat() if self.analyzed_at else None,
            "patient": self.patient.model_dump(),
            "transcript": self.transcript,
            "pending": list(self.queue.pending),
        }

    @classmethod
    def from_dict(
        cls,
        session_id: str,
        data: dict,
        timeline: list[TimelineEntry] | None = None,
        **kwargs,
    ) -> "DictationSession":
        session = cls(
            session_id=session_id,
            clinician=data.get("clinician", ""),
            site=data.get("site", ""),
            mode=data.get("mode", MODE_SECTION),
            active_section=parse_section_key(data.get("active_section")) or SectionKey.CHIEF_COMPLAINT,
            auto_section=data.get("auto_section", True),
            analysis_enabled=data.get("analysis_enabled", True),
            **kwargs,
        )
        session.consent = bool(data.get("consent", False))
        if data.get("created_at"):
            session.created_at = datetime.datetime.fromisoformat(data["created_at"])
        session.sections = coerce_note(data.get("sections"))
        session.ai_sections = coerce_note(data.get("ai_sections"))
        session.alerts = list(data.get("alerts") or [])
        session.ai_questions = list(data.get("ai_questions") or [])
        if data.get("analyzed_at"):
            session.analyzed_at = datetime.datetime.fromisoformat(data["analyzed_at"])
        session.patient = PatientProfile(**(data.get("patient") or {}))
        session.transcript = data.get("transcript", "")
        session.queue.pending = list(data.get("pending") or [])
        session.timeline = list(timeline or [])
        return session
