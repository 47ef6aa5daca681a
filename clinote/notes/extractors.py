"""Regex field extractors over Spanish clinical dictation.

Every extractor fails soft: a miss returns "" (or {} for patient fields) and
an unexpected error is logged and treated as a miss, so one broken pattern
never aborts the rest of the pipeline for a delta.
"""

import functools
import logging
import re
from dataclasses import dataclass, field

from clinote.notes.bucketer import MEDICATION_PATTERN
from clinote.notes.segmenter import normalize_text

logger = logging.getLogger(__name__)

VITALS_SEPARATOR = " · "


def fail_soft(default):
    """Decorator: log and return ``default`` instead of raising."""
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except Exception:
                logger.warning("Extractor %s failed; treating as no match", fn.__name__, exc_info=True)
                return default() if callable(default) else default
        return wrapper
    return decorator


# Connectors and punctuation left at the edges once a capture is cut out
_EDGE_NOISE = re.compile(
    r'^(?:[\s,;:\-/]|(?:y|e|con|de|a)\b)+|(?:[\s,;:\-/]|\b(?:y|e|con|de|a))+$',
    re.IGNORECASE,
)
_WORD = re.compile(r'[a-záéíóúñü]{3,}', re.IGNORECASE)


@dataclass
class Capture:
    """Extracted value plus the regions of the source text it consumed."""
    text: str
    spans: list[tuple[int, int]] = field(default_factory=list)

    def leftovers(self, source: str) -> list[str]:
        """Pieces of ``source`` outside the consumed spans that still carry words."""
        pieces = []
        pos = 0
        for start, end in sorted(self.spans):
            if start > pos:
                pieces.append(source[pos:start])
            pos = max(pos, end)
        pieces.append(source[pos:])

        out = []
        for piece in pieces:
            piece = _EDGE_NOISE.sub("", normalize_text(piece))
            if _WORD.search(piece):
                out.append(piece)
        return out


# ---------------------------------------------------------------------------
# Vitals
# ---------------------------------------------------------------------------

_BP = re.compile(
    r'\b(?:PA|TA|presi[oó]n(?:\s+arterial)?)\s*(?:de\s*)?:?\s*(\d{2,3})\s*[/\-]\s*(\d{2,3})\b',
    re.IGNORECASE,
)
_HR = re.compile(
    r'\b(?:FC|pulso|frecuencia\s+card[ií]aca)\s*(?:de\s*)?:?\s*(\d{2,3})\b',
    re.IGNORECASE,
)
_RR = re.compile(
    r'\b(?:FR|frecuencia\s+respiratoria)\s*(?:de\s*)?:?\s*(\d{1,2})\b',
    re.IGNORECASE,
)
_TEMP = re.compile(
    r'\btemp(?:eratura)?\s*(?:de\s*)?:?\s*(\d{2}(?:[.,]\d)?)\b',
    re.IGNORECASE,
)
_SAT = re.compile(
    r'\b(?:sat(?:uraci[oó]n)?(?:\s*(?:de\s+)?(?:o2|ox[ií]geno))?|spo2)\s*(?:de\s*)?:?\s*(\d{2,3})\s*%?',
    re.IGNORECASE,
)


@fail_soft(None)
def capture_vitals(text: str) -> Capture | None:
    out = []
    spans = []
    m = _BP.search(text)
    if m:
        out.append(f"PA: {m.group(1)}/{m.group(2)}")
        spans.append(m.span())
    m = _HR.search(text)
    if m:
        out.append(f"FC: {m.group(1)}")
        spans.append(m.span())
    m = _RR.search(text)
    if m:
        out.append(f"FR: {m.group(1)}")
        spans.append(m.span())
    m = _TEMP.search(text)
    if m:
        celsius = float(m.group(1).replace(",", "."))
        out.append(f"Temp: {celsius:.1f}°C")
        spans.append(m.span())
    m = _SAT.search(text)
    if m:
        out.append(f"SatO2: {m.group(1)}%")
        spans.append(m.span())
    if not out:
        return None
    return Capture(VITALS_SEPARATOR.join(out), spans)


def extract_vitals(text: str) -> str:
    """Return tagged vitals, e.g. "PA: 120/80 · FC: 78 · Temp: 38.5°C"."""
    capture = capture_vitals(text)
    return capture.text if capture else ""


# ---------------------------------------------------------------------------
# Diagnosis / prescription statements
# ---------------------------------------------------------------------------

_DX = re.compile(r'\b(?:diagn[oó]stico\s*(?:es|:)|dx\s*:?)\s*([^.\n]+)', re.IGNORECASE)

_RX = re.compile(
    r'\b(?:tratamiento|receta|prescripci[oó]n|se\s+indica|se\s+deja(?:r[aá])?\s+de\s+tratamiento)\b\s*:?\s*([^.\n]+)',
    re.IGNORECASE,
)
# Plan wording that ends a prescription statement dictated in the same breath
_RX_BOUNDARY = re.compile(
    r'\b(?:plan|indicaciones|seguimiento|control|retornar|cita|reposo)\b',
    re.IGNORECASE,
)
# Dangling "y" / comma left behind when the boundary cut mid-enumeration
_TRAILING_JOINER = re.compile(r'(?:[\s,;]+y)?[\s,;]*$', re.IGNORECASE)


# A capture made only of connectors ("con", "de la") carries no statement
_FILLER_ONLY = re.compile(r'^(?:(?:y|e|con|de|del|a|al|el|la|los|las|en|por|para|que|su|sus)\b\s*)+$', re.IGNORECASE)


@fail_soft(None)
def capture_diagnosis(text: str) -> Capture | None:
    m = _DX.search(text)
    if not m:
        return None
    value = normalize_text(m.group(1))
    if not value or _FILLER_ONLY.match(value):
        return None
    return Capture(value, [(m.start(), m.end())])


@fail_soft(None)
def capture_prescription(text: str) -> Capture | None:
    m = _RX.search(text)
    if not m:
        return None
    captured = m.group(1)
    end = m.end()
    boundary = _RX_BOUNDARY.search(captured)
    if boundary:
        captured = captured[:boundary.start()]
        end = m.start(1) + boundary.start()
    value = _TRAILING_JOINER.sub("", normalize_text(captured))
    if not value or _FILLER_ONLY.match(value):
        return None
    return Capture(value, [(m.start(), end)])


def extract_diagnosis(text: str) -> str:
    capture = capture_diagnosis(text)
    return capture.text if capture else ""


def extract_prescription(text: str) -> str:
    capture = capture_prescription(text)
    return capture.text if capture else ""


@fail_soft("")
def extract_medications_loose(text: str) -> str:
    """Note drug names mentioned without an explicit prescription phrase."""
    found = []
    for m in MEDICATION_PATTERN.finditer(text):
        name = m.group(1).lower()
        if name not in found:
            found.append(name)
    return f"Medicamentos mencionados: {', '.join(found)}" if found else ""


# ---------------------------------------------------------------------------
# Patient identity
# ---------------------------------------------------------------------------

_NAME_WORD = r'[A-ZÁÉÍÓÚÑ][a-záéíóúñü]+'
_NAME = re.compile(
    r'(?i:\bse\s+llama|\bnombre\s+(?:del\s+paciente\s+|de\s+la\s+paciente\s+)?es|\bpaciente\s+de\s+nombre)\s+'
    r'(' + _NAME_WORD + r'(?:\s+' + _NAME_WORD + r'){0,4})'
)
_AGE = re.compile(r'\b(?:tiene|edad(?:\s+de)?\s*:?)\s*(\d{1,3})\s*a[nñ]os\b', re.IGNORECASE)
_AGE_SUFFIX = re.compile(r'\b(\d{1,3})\s*a[nñ]os\s+de\s+edad\b', re.IGNORECASE)
_SEX = re.compile(r'\bsexo\s*:?\s*(masculino|femenino|hombre|mujer|otro|m|f)\b', re.IGNORECASE)
_DOCUMENT = re.compile(
    r'\b(?:dpi|cui|documento(?:\s+de\s+identificaci[oó]n)?)\s*(?:n[uú]mero|no\.?)?\s*:?\s*(\d[\d\s\-]{5,22}\d)',
    re.IGNORECASE,
)
_PHONE = re.compile(
    r'\b(?:tel[eé]fono|celular|tel|cel)\.?\s*(?:n[uú]mero|no\.?)?\s*:?\s*(\+?\d[\d\s\-]{6,18}\d)',
    re.IGNORECASE,
)
_RECORD = re.compile(
    r'\b(?:expediente|n[uú]mero\s+de\s+registro|registro|ficha)\s*(?:n[uú]mero|no\.?|#)?\s*:?\s*'
    r'([A-Za-z0-9\-]*\d[A-Za-z0-9\-]*)',
    re.IGNORECASE,
)

_SEX_CANONICAL = {
    "masculino": "Masculino", "hombre": "Masculino", "m": "Masculino",
    "femenino": "Femenino", "mujer": "Femenino", "f": "Femenino",
    "otro": "Otro",
}


def _digits(value: str) -> str:
    return re.sub(r'\D', '', value)


def format_document_id(value: str) -> str:
    """Group a 13-digit DPI as 4-5-4; anything else is returned as bare digits."""
    digits = _digits(value)
    if len(digits) == 13:
        return f"{digits[:4]} {digits[4:9]} {digits[9:]}"
    return digits


@fail_soft("")
def extract_name(text: str) -> str:
    m = _NAME.search(text)
    return m.group(1).strip() if m else ""


@fail_soft("")
def extract_age(text: str) -> str:
    m = _AGE.search(text) or _AGE_SUFFIX.search(text)
    return m.group(1) if m else ""


@fail_soft("")
def extract_sex(text: str) -> str:
    m = _SEX.search(text)
    return _SEX_CANONICAL[m.group(1).lower()] if m else ""


@fail_soft("")
def extract_document_id(text: str) -> str:
    m = _DOCUMENT.search(text)
    return format_document_id(m.group(1)) if m else ""


@fail_soft("")
def extract_phone(text: str) -> str:
    m = _PHONE.search(text)
    if not m:
        return ""
    digits = _digits(m.group(1))
    return digits if len(digits) >= 8 else ""


@fail_soft("")
def extract_record_number(text: str) -> str:
    m = _RECORD.search(text)
    return m.group(1).upper() if m else ""


_PATIENT_EXTRACTORS = {
    "name": extract_name,
    "age": extract_age,
    "sex": extract_sex,
    "document_id": extract_document_id,
    "phone": extract_phone,
    "record_number": extract_record_number,
}


def extract_patient_fields(text: str) -> dict[str, str]:
    """Return only the patient fields found in ``text``."""
    context = normalize_text(text)
    if not context:
        return {}
    fields = {}
    for name, extractor in _PATIENT_EXTRACTORS.items():
        value = extractor(context)
        if value:
            fields[name] = value
    return fields
