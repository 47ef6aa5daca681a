"""Delta classification pipeline: segments -> headers -> mixed split -> bucket -> extract -> merge."""

import datetime
import logging
from dataclasses import dataclass, field

from clinote.notes.bucketer import best_bucket
from clinote.notes.extractors import capture_diagnosis, capture_prescription, capture_vitals
from clinote.notes.merge import merge_into
from clinote.notes.sections import NoteState, SectionKey, TimelineEntry, empty_note
from clinote.notes.segmenter import (
    DEFAULT_SPLIT_MIN_OFFSET,
    detect_section_header,
    normalize_text,
    split_mixed_segment,
    split_segments,
)

logger = logging.getLogger(__name__)


@dataclass
class DeltaResult:
    next_state: NoteState
    timeline_entries: list[TimelineEntry] = field(default_factory=list)
    touched: list[SectionKey] = field(default_factory=list)

    def merge(self, key: SectionKey, text: str):
        merge_into(self.next_state, key, text)
        if key not in self.touched:
            self.touched.append(key)


# Extractors that pull the section's own statement out of a routed piece
_CAPTURES = {
    SectionKey.VITALS: capture_vitals,
    SectionKey.DIAGNOSIS: capture_diagnosis,
    SectionKey.PRESCRIPTION: capture_prescription,
}


def _route_piece(result: DeltaResult, piece: str, fallback: SectionKey) -> SectionKey:
    """Merge ``piece`` into its best section; words outside the capture are routed on their own."""
    key = best_bucket(piece, fallback)
    capture_fn = _CAPTURES.get(key)
    capture = capture_fn(piece) if capture_fn else None
    if capture is None:
        result.merge(key, piece)
        return key

    result.merge(key, capture.text)
    for rest in capture.leftovers(piece):
        result.merge(best_bucket(rest, fallback), rest)
    return key


def classify_delta(
    delta: str,
    state: NoteState | None,
    fallback: SectionKey = SectionKey.IMPRESSION,
    *,
    min_split_offset: int = DEFAULT_SPLIT_MIN_OFFSET,
    now: datetime.datetime | None = None,
) -> DeltaResult:
    """Route a dictated delta into note sections.

    The input state is not modified. Blank deltas return the state unchanged
    and no timeline entries. A delta with no segments of its own ("...")
    changes no section but is still logged once under the fallback section.
    """
    next_state = empty_note()
    next_state.update(state or {})
    result = DeltaResult(next_state)

    text = normalize_text(delta)
    if not text:
        return result

    stamp = now or datetime.datetime.now()
    current_fallback = fallback

    for segment in split_segments(delta):
        header = detect_section_header(segment)
        if header.key is not None:
            if header.text:
                result.merge(header.key, header.text)
            result.timeline_entries.append(TimelineEntry(timestamp=stamp, section=header.key.value, text=segment))
            current_fallback = header.key
            continue

        for piece in split_mixed_segment(segment, min_split_offset):
            key = _route_piece(result, piece, current_fallback)
            result.timeline_entries.append(TimelineEntry(timestamp=stamp, section=key.value, text=piece))

    if not result.timeline_entries:
        result.timeline_entries.append(TimelineEntry(timestamp=stamp, section=fallback.value, text=text))

    logger.debug("Classified delta into %d piece(s)", len(result.timeline_entries))
    return result
