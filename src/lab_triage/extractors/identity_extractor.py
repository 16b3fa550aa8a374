# ============================================================================
# src/lab_triage/extractors/identity_extractor.py
# ============================================================================
"""
Patient Identity Extraction

Recovers the patient's Chilean RUT from normalized report text.

Every pattern in the library is applied; each hit becomes a candidate with
a source context (header, form, table, body) read from the surrounding
text. Candidates are scored centrally, merged by cleaned value, and the
best one is picked preferring checksum-valid values.
"""

import re
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..config import threshold_settings
from ..core.confidence import IdentityFeatures, score_identity_candidate
from ..core.context.enums import SourceContext
from ..core.context.identity import IdentityCandidate, IdentityExtractionResult
from ..utils.rut import clean_rut, format_rut, validate_rut, fix_rut_ocr

logger = logging.getLogger(__name__)

# Body (1-2 digits, optional dot, 3 digits, optional dot, 3 digits) + check digit
_RUT_BODY = r'\d{1,2}\.?\d{3}\.?\d{3}'
_RUT_VALUE = rf'({_RUT_BODY}\s*-\s*[0-9K])'
_OCR_CHAR = r'[0-9OoQDlIiSsBZzG]'

CONTEXT_WINDOW = 100


@dataclass(frozen=True)
class RutPattern:
    name: str
    regex: re.Pattern
    base_confidence: float
    insert_hyphen: bool = False
    ocr_repair: bool = False


def _pattern(name: str, regex: str, confidence: float, **flags) -> RutPattern:
    return RutPattern(name, re.compile(regex, re.IGNORECASE), confidence, **flags)


RUT_PATTERNS: Tuple[RutPattern, ...] = (
    _pattern("rut_label", rf'(?:\bRUT\b|\bR\.U\.T\.?)\s*:?\s*{_RUT_VALUE}', 98),
    _pattern("nombre_rut", rf'(?:\bNOMBRE\b|\bNAME\b)[^\n]*?(?:\bRUT\b|\bR\.U\.T\.?)\s*:?\s*{_RUT_VALUE}', 96),
    _pattern("standard_dotted", r'\b(\d{1,2}\.\d{3}\.\d{3}-[0-9K])\b', 95),
    _pattern("cedula_label", rf'(?:\bC\.I\.?|\bCI\b|\bC[EÉ]DULA\b)\s*:?\s*{_RUT_VALUE}', 95),
    _pattern("run_label", rf'(?:\bRUN\b|\bR\.U\.N\.?)\s*:?\s*{_RUT_VALUE}', 95),
    _pattern("paciente_label", rf'(?:\bPACIENTE\b|\bPATIENT\b)\s*:?\s*{_RUT_VALUE}', 92),
    _pattern("undotted", r'\b(\d{7,8}-[0-9K])\b', 90),
    _pattern("identificacion_label", rf'(?:\bIDENTIFICACI[OÓ]N\b|\bIDENTIFICATION\b)\s*:?\s*{_RUT_VALUE}', 90),
    _pattern("documento_label", rf'(?:\bDOC\b\.?|\bDOCUMENTO\b)\s*:?\s*{_RUT_VALUE}', 88),
    _pattern("spaced", r'\b(\d{1,2} \d{3} \d{3}-[0-9K])\b', 85),
    _pattern("table_cell", rf'\|\s*({_RUT_BODY}-[0-9K])\s*\|', 80),
    _pattern("loose_hyphen", rf'\b{_RUT_VALUE}(?![0-9A-Z])', 75),
    _pattern("missing_hyphen", r'\b(\d{7,8}[ \t]+[0-9K])\b', 70, insert_hyphen=True),
    _pattern(
        "ocr_damaged",
        rf'(?<![0-9A-Za-z])({_OCR_CHAR}{{1,2}}\.{_OCR_CHAR}{{3}}\.{_OCR_CHAR}{{3}}-[0-9Kk])(?![0-9A-Za-z])',
        65,
        ocr_repair=True,
    ),
)

_HEADER_WORDS = ("paciente", "patient", "datos", "información", "informacion")
_FORM_WORDS = ("rut", "cédula", "cedula", "run")


def classify_source_context(window: str) -> SourceContext:
    """Where in the document layout a candidate sits, judged from nearby text."""
    lowered = window.lower()
    if any(word in lowered for word in _HEADER_WORDS):
        return SourceContext.HEADER
    if ':' in lowered or any(word in lowered for word in _FORM_WORDS):
        return SourceContext.FORM
    if '|' in window or '\t' in window or '   ' in window:
        return SourceContext.TABLE
    return SourceContext.BODY


class IdentityExtractor:
    """
    Extract patient RUT candidates and pick the best one.

    Usage:
        extractor = IdentityExtractor()
        result = extractor.extract(normalized_text)
        if result.found:
            rut = result.best_match.formatted_value
    """

    def __init__(
        self,
        patterns: Tuple[RutPattern, ...] = RUT_PATTERNS,
        accept_confidence: Optional[float] = None,
    ):
        self.patterns = patterns
        self.accept_confidence = (
            accept_confidence if accept_confidence is not None
            else threshold_settings.IDENTITY_ACCEPT_CONFIDENCE
        )

    def extract(self, text: str) -> IdentityExtractionResult:
        """
        Find every RUT candidate in the text.

        Args:
            text: Normalized document text

        Returns:
            IdentityExtractionResult (best_match is None when nothing was found)
        """
        if not text:
            return IdentityExtractionResult()

        raw_candidates = []
        for pattern in self.patterns:
            for match in pattern.regex.finditer(text):
                candidate = self._build_candidate(text, match, pattern)
                if candidate is not None:
                    raw_candidates.append(candidate)

        candidates = self._merge(raw_candidates)
        best = self.select_best(candidates)

        if best:
            logger.info(
                f"Identity: {best.anonymized} (confidence {best.confidence:.0f}, "
                f"valid={best.is_valid}, {len(candidates)} candidate(s))"
            )
        else:
            logger.info("Identity: no RUT candidates found")

        return IdentityExtractionResult(candidates=candidates, best_match=best)

    def _build_candidate(self, text: str, match: re.Match, pattern: RutPattern) -> Optional[IdentityCandidate]:
        raw_value = match.group(1)
        value = fix_rut_ocr(raw_value) if pattern.ocr_repair else raw_value
        if pattern.insert_hyphen:
            value = re.sub(r'[ \t]+(?=[0-9Kk]$)', '-', value.strip())

        cleaned = clean_rut(value)
        if len(cleaned) not in (8, 9) or not cleaned[:-1].isdigit():
            return None

        position = match.start(1)
        window = text[max(0, position - CONTEXT_WINDOW):min(len(text), match.end(1) + CONTEXT_WINDOW)]
        source_context = classify_source_context(window)
        is_valid = validate_rut(cleaned)

        confidence = score_identity_candidate(
            pattern.base_confidence,
            IdentityFeatures(source_context=source_context, checksum_valid=is_valid, context=window),
        )

        return IdentityCandidate(
            raw_value=raw_value.strip(),
            formatted_value=format_rut(cleaned),
            is_valid=is_valid,
            confidence=confidence,
            source_context=source_context,
            position=position,
            pattern_name=pattern.name,
            context=' '.join(window.split()),
        )

    @staticmethod
    def _merge(candidates: List[IdentityCandidate]) -> List[IdentityCandidate]:
        """One candidate per cleaned value, highest confidence kept."""
        best_by_value: Dict[str, IdentityCandidate] = {}
        for candidate in candidates:
            key = clean_rut(candidate.formatted_value)
            current = best_by_value.get(key)
            if (
                current is None
                or candidate.confidence > current.confidence
                or (candidate.confidence == current.confidence and candidate.position < current.position)
            ):
                best_by_value[key] = candidate

        return sorted(best_by_value.values(), key=lambda c: (-c.confidence, c.position))

    def select_best(self, candidates: List[IdentityCandidate]) -> Optional[IdentityCandidate]:
        """
        Highest-confidence valid candidate above the acceptance threshold,
        else highest-confidence valid, else highest-confidence overall.
        """
        if not candidates:
            return None

        valid = [c for c in candidates if c.is_valid]
        accepted = [c for c in valid if c.confidence > self.accept_confidence]
        if accepted:
            return accepted[0]
        if valid:
            return valid[0]
        return candidates[0]


def extract_identity(text: str) -> IdentityExtractionResult:
    """Convenience function for one-off identity extraction."""
    return IdentityExtractor().extract(text)
