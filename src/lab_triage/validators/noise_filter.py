# ============================================================================
# src/lab_triage/validators/noise_filter.py
# ============================================================================
"""
Noise Filter

Drops extraction candidates that cannot be real lab results:
1. Exam name shorter than 3 characters
2. Exam name with a numeric literal glued on ("GLUCOSA95") or a dangling comma
3. Empty value
4. Non-numeric value where a number is expected
5. Confidence below the extraction floor

Cheap and deterministic. Runs before deduplication.
"""

import re
import logging
from typing import List, Optional, Sequence

from ..config import threshold_settings
from ..core.context.enums import ResultKind
from ..core.context.extracted_result import ExtractedResult

logger = logging.getLogger(__name__)

MIN_EXAM_NAME_LENGTH = 3

_GLUED_NUMBER = re.compile(r'[A-Za-zÁÉÍÓÚÑáéíóúñ]{3,}[0-9]+$')


class NoiseFilter:
    """
    Rule-based rejection of malformed candidates.

    Usage:
        kept = NoiseFilter().filter(candidates)
    """

    def __init__(self, min_confidence: Optional[float] = None):
        self.min_confidence = (
            min_confidence if min_confidence is not None
            else threshold_settings.MIN_EXTRACTION_CONFIDENCE
        )

    def rejection_reason(self, candidate: ExtractedResult) -> Optional[str]:
        """Why a candidate is noise, or None when it is kept."""
        name = (candidate.exam_name or "").strip()

        if len(name) < MIN_EXAM_NAME_LENGTH:
            return "exam name too short"
        if _GLUED_NUMBER.search(name):
            return "numeric literal glued to exam name"
        if name.endswith(','):
            return "exam name ends with a dangling comma"

        value = candidate.raw_value
        if value is None or (isinstance(value, str) and not value.strip()):
            return "empty value"
        if candidate.result_kind == ResultKind.NUMERIC and candidate.numeric_value is None:
            return "non-numeric value for numeric result"

        if candidate.confidence < self.min_confidence:
            return f"confidence {candidate.confidence:.2f} below {self.min_confidence:.2f}"

        return None

    def filter(self, candidates: Sequence[ExtractedResult]) -> List[ExtractedResult]:
        kept = []
        for candidate in candidates:
            reason = self.rejection_reason(candidate)
            if reason:
                logger.debug(f"Dropped {candidate.exam_name!r} ({candidate.strategy}): {reason}")
                continue
            kept.append(candidate)

        if len(kept) < len(candidates):
            logger.debug(f"Noise filter kept {len(kept)}/{len(candidates)} candidates")
        return kept
