"""HTTP client for the remote text-analysis endpoint."""

import logging
import time
from dataclasses import dataclass, field

import httpx

from clinote.config import AnalysisConfig
from clinote.notes.sections import NoteState, note_to_dict, parse_section_key

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """The remote analysis call failed. Recoverable: callers keep local results."""


@dataclass
class AnalysisResponse:
    sections: NoteState
    alerts: list[str] | None = None
    questions: list[str] | None = None
    processing_duration_ms: int = 0
    raw: dict = field(default_factory=dict)


def build_payload(
    sections: NoteState,
    alerts: list[str],
    questions: list[str],
    delta_text: str,
    timeline_context: str,
    transcript_context: str,
    meta: dict | None = None,
) -> dict:
    return {
        "meta": meta or {},
        "current": {
            "sections": note_to_dict(sections),
            "alerts": list(alerts),
            "questions": list(questions),
        },
        "input": {
            "delta_text": delta_text,
            "timeline_context": timeline_context,
            "transcript_context": transcript_context,
        },
    }


def _parse_sections(raw) -> NoteState:
    """Only the keys the endpoint returned; missing sections keep their current text."""
    sections = {}
    if not isinstance(raw, dict):
        return sections
    for raw_key, value in raw.items():
        key = parse_section_key(raw_key)
        if key is not None and value is not None:
            sections[key] = str(value)
    return sections


def _parse_response(data: dict) -> AnalysisResponse:
    if not isinstance(data, dict):
        raise AnalysisError(f"Unexpected analysis response type: {type(data).__name__}")
    alerts = data.get("alerts")
    questions = data.get("questions")
    return AnalysisResponse(
        sections=_parse_sections(data.get("sections")),
        alerts=[str(a) for a in alerts] if isinstance(alerts, list) else None,
        questions=[str(q) for q in questions] if isinstance(questions, list) else None,
        raw=data,
    )


class AnalysisClient:
    def __init__(self, config: AnalysisConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport

    async def analyze(self, payload: dict) -> AnalysisResponse:
        delta = payload.get("input", {}).get("delta_text", "")
        logger.info("Sending %d chars to analysis endpoint %s", len(delta), self.config.url)
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds, transport=self._transport) as client:
                response = await client.post(self.config.url, json=payload)
        except httpx.HTTPError as e:
            raise AnalysisError(f"Analysis request failed: {e}") from e

        if response.status_code >= 400:
            raise AnalysisError(f"HTTP {response.status_code}: {response.text[:500]}")

        try:
            data = response.json()
        except ValueError as e:
            raise AnalysisError("Analysis endpoint returned invalid JSON") from e

        result = _parse_response(data)
        result.processing_duration_ms = int((time.monotonic() - start) * 1000)
        return result
