"""Normalisation, explicit header detection and segmentation of dictated text.

Dictation arrives as run-on speech ("dolor de cabeza desde hace tres dias.
tratamiento paracetamol 500 mg cada 8 horas. diagnostico cefalea tensional"),
so every delta is cut into sentence-like segments before classification.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterator

from clinote.notes.sections import SectionKey

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r'\s+')


def normalize_text(text: str | None) -> str:
    """Collapse whitespace runs to a single space and trim."""
    return _WHITESPACE.sub(' ', text or '').strip()


# ---------------------------------------------------------------------------
# Explicit section headers ("Diagnóstico: ...", "Receta - ...")
# First match wins; order resolves ambiguous labels.
# ---------------------------------------------------------------------------

_LABEL_END = r'(\s*[:\-])\s*'

HEADER_RULES: list[tuple[SectionKey, re.Pattern]] = [
    (SectionKey.CHIEF_COMPLAINT,
     re.compile(r'^(motivo(\s+de(\s+la)?)?\s+(consulta|la\s+consulta|de\s+consulta)?)' + _LABEL_END, re.IGNORECASE)),
    (SectionKey.HISTORY,
     re.compile(r'^(antecedentes|historia\s+cl[ií]nica|hx)' + _LABEL_END, re.IGNORECASE)),
    (SectionKey.IMPRESSION,
     re.compile(r'^(impresi[oó]n(\s+cl[ií]nica)?)' + _LABEL_END, re.IGNORECASE)),
    (SectionKey.VITALS,
     re.compile(r'^(signos\s+vitales|vitales)' + _LABEL_END, re.IGNORECASE)),
    (SectionKey.DIAGNOSIS,
     re.compile(r'^(diagn[oó]stico|dx)' + _LABEL_END, re.IGNORECASE)),
    (SectionKey.PRESCRIPTION,
     re.compile(r'^(prescripci[oó]n|receta|medicaci[oó]n|tratamiento)' + _LABEL_END, re.IGNORECASE)),
    (SectionKey.PLAN,
     re.compile(r'^(plan|indicaciones)' + _LABEL_END, re.IGNORECASE)),
    (SectionKey.STUDIES,
     re.compile(r'^(estudios\s+solicitados|laboratorio|imagenolog[ií]a|ex[aá]menes)' + _LABEL_END, re.IGNORECASE)),
    (SectionKey.REFERRALS,
     re.compile(r'^(referencias|interconsulta|referir)' + _LABEL_END, re.IGNORECASE)),
    (SectionKey.AGREEMENTS,
     re.compile(r'^(acuerdos|pr[oó]ximos\s+pasos|seguimiento)' + _LABEL_END, re.IGNORECASE)),
]


@dataclass
class HeaderMatch:
    key: SectionKey | None
    text: str  # remainder with the label stripped, or the whole text when no header


def detect_section_header(text: str) -> HeaderMatch:
    """Match a section label anchored at the very start of the fragment."""
    fragment = normalize_text(text)
    if not fragment:
        return HeaderMatch(None, "")
    for key, pattern in HEADER_RULES:
        m = pattern.match(fragment)
        if m:
            return HeaderMatch(key, normalize_text(fragment[m.end():]))
    return HeaderMatch(None, fragment)


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------

_TERMINATORS = re.compile(r'[.\n;]+')


def split_segments(text: str) -> Iterator[str]:
    """Yield trimmed, non-empty segments split on runs of '.', ';' and newlines."""
    # Newlines are terminators, so split before whitespace is collapsed
    for part in _TERMINATORS.split(text or ''):
        segment = normalize_text(part)
        if segment:
            yield segment


# ---------------------------------------------------------------------------
# Mixed prescription + diagnosis statements
# ---------------------------------------------------------------------------

DEFAULT_SPLIT_MIN_OFFSET = 8

_DX_KEYWORD = re.compile(r'diagn[oó]s', re.IGNORECASE)
_DX_EVIDENCE = [
    _DX_KEYWORD,
    re.compile(r'\bdx\b', re.IGNORECASE),
    re.compile(r'impresi[oó]n', re.IGNORECASE),
]
_RX_EVIDENCE = [
    re.compile(r'tratamiento', re.IGNORECASE),
    re.compile(r'receta', re.IGNORECASE),
    re.compile(r'prescrib', re.IGNORECASE),
    re.compile(r'se\s+(?:le\s+)?deja', re.IGNORECASE),
    re.compile(r'se\s+indica', re.IGNORECASE),
    re.compile(r'\b\d+\s*mg\b', re.IGNORECASE),
    re.compile(r'\bcada\s', re.IGNORECASE),
    re.compile(r'\bpor\s', re.IGNORECASE),
    re.compile(r'd[ií]as', re.IGNORECASE),
]


def split_mixed_segment(segment: str, min_offset: int = DEFAULT_SPLIT_MIN_OFFSET) -> list[str]:
    """Split "<treatment> ... diagnóstico <dx>" into the treatment part and the diagnosis part.

    Only splits when the segment carries evidence of both statements and the
    diagnosis keyword sits past ``min_offset`` characters.
    """
    has_dx = any(p.search(segment) for p in _DX_EVIDENCE)
    has_rx = any(p.search(segment) for p in _RX_EVIDENCE)
    if not (has_dx and has_rx):
        return [segment]

    m = _DX_KEYWORD.search(segment)
    if m is None or m.start() <= min_offset:
        return [segment]

    pieces = [normalize_text(segment[:m.start()]), normalize_text(segment[m.start():])]
    pieces = [p for p in pieces if p]
    logger.debug("Split mixed segment at %d into %d pieces", m.start(), len(pieces))
    return pieces
