# ============================================================================
# src/lab_triage/extractors/reference_range_parser.py
# ============================================================================
"""
Reference Range Parser

Recognises the reference interval notations printed on Chilean reports:

    74 - 106                  range
    [*] 74 - 106              range (flagged row)
    < 200 / Menor a 38        upper_limit
    Hasta 34                  upper_limit
    Bajo (deseable): < 200    upper_limit
    > 40 / Mayor a 40         lower_limit
    = 1                       exact
    Normal: 70 - 100          range
    H: 13 - 17 / M: 12 - 16   range, gender specific
    Adultos: 10 - 49          range

Patterns are tried most specific first; a later pattern never claims text
already claimed by an earlier one.
"""

import re
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..config import threshold_settings
from ..core.context.enums import RangeKind
from ..core.context.reference import ReferenceRange
from ..utils.parsing import NUMBER_PATTERN, ABNORMAL_MARKER, normalize_decimal

logger = logging.getLogger(__name__)

_NUM_FIRST = rf'(?<![\d.,/\-])({NUMBER_PATTERN})'
_NUM = rf'(?<![\d.,/])({NUMBER_PATTERN})'
_NUM_END = r'(?![\d.,]*\d)(?!\s*-\s*\d)'
_GENDER_LABEL = r'(?P<gender>\bhombres?\b|\bmujer(?:es)?\b|\bmasculino\b|\bfemenino\b|\b[HM]\b)'

MIN_RANGE_CONFIDENCE = 50.0

KNOWN_UNITS = (
    "mg/dL", "g/dL", "mUI/L", "uUI/mL", "µUI/mL", "U/L", "UI/L", "ng/dL", "pg/mL",
    "ng/mL", "mg/L", "mmol/L", "mEq/L", "µg/dL", "ug/dL", "mm/hr", "mm/h",
    "mL/min", "fL", "pg", "%", "x10^3/uL", "x10^6/uL", "mill/mm3", "/mm3", "/uL",
)
_UNIT_RE = re.compile(
    r'(?<![A-Za-z])(' + '|'.join(re.escape(u) for u in sorted(KNOWN_UNITS, key=len, reverse=True)) + r')(?![A-Za-z])',
    re.IGNORECASE,
)


@dataclass(frozen=True)
class RangePattern:
    name: str
    regex: re.Pattern
    kind: RangeKind
    confidence: float


def _compile(name: str, regex: str, kind: RangeKind, confidence: float) -> RangePattern:
    return RangePattern(name, re.compile(regex, re.IGNORECASE), kind, confidence)


RANGE_PATTERNS: Tuple[RangePattern, ...] = (
    _compile("gender_range", rf'{_GENDER_LABEL}\s*:\s*{_NUM_FIRST}\s*-\s*{_NUM}{_NUM_END}', RangeKind.RANGE, 94),
    _compile("desirable_upper", rf'bajo\s*\([^)]*\)\s*:?\s*<\s*{_NUM}', RangeKind.UPPER_LIMIT, 93),
    _compile("normal_range", rf'normal\s*:\s*{_NUM_FIRST}\s*-\s*{_NUM}{_NUM_END}', RangeKind.RANGE, 96),
    _compile("normal_upper", rf'normal\s*:\s*(?:<|menor\s+(?:a|que|de))\s*{_NUM}', RangeKind.UPPER_LIMIT, 93),
    _compile("adult_range", rf'adultos?\s*:\s*{_NUM_FIRST}\s*-\s*{_NUM}{_NUM_END}', RangeKind.RANGE, 91),
    _compile("flagged_range", rf'{re.escape(ABNORMAL_MARKER)}\s*{_NUM_FIRST}\s*-\s*{_NUM}{_NUM_END}', RangeKind.RANGE, 98),
    _compile("hasta", rf'\bhasta\s+{_NUM}', RangeKind.UPPER_LIMIT, 95),
    _compile("range", rf'{_NUM_FIRST}\s*-\s*{_NUM}{_NUM_END}', RangeKind.RANGE, 85),
    _compile("upper_limit", rf'(?:<\s*=?|\bmenor\s+(?:a|que|de)\b|\binferior\s+a\b)\s*{_NUM}', RangeKind.UPPER_LIMIT, 92),
    _compile("lower_limit", rf'(?:>\s*=?|\bmayor\s+(?:a|que|de)\b|\bsuperior\s+a\b|\bdesde\b)\s*{_NUM}', RangeKind.LOWER_LIMIT, 90),
    _compile("exact", rf'(?<![<>])=\s*{_NUM}', RangeKind.EXACT, 88),
)


def detect_gender(text: str) -> Optional[str]:
    """'M' / 'F' when the text names a sex, else None."""
    lowered = text.lower()
    if 'hombre' in lowered or 'masculino' in lowered or re.search(r'\bh\s*:', text, re.IGNORECASE):
        return 'M'
    if 'mujer' in lowered or 'femenino' in lowered or re.search(r'\bm\s*:', text, re.IGNORECASE):
        return 'F'
    return None


def _to_float(text: str) -> float:
    return float(normalize_decimal(text))


class ReferenceRangeParser:
    """
    Parse reference ranges out of report text.

    Usage:
        parser = ReferenceRangeParser()
        ranges = parser.parse(section.text, base_offset=section.start)
        nearest = parser.match_to(result.source_position, ranges)
    """

    def __init__(self, patterns: Tuple[RangePattern, ...] = RANGE_PATTERNS):
        self.patterns = patterns

    def parse(self, text: str, base_offset: int = 0) -> List[ReferenceRange]:
        """
        Every reference range in the text.

        Args:
            text: Normalized text (a section, a line, or a fragment)
            base_offset: Added to each range position

        Returns:
            Ranges ordered by position
        """
        if not text:
            return []

        claimed: List[Tuple[int, int]] = []
        ranges = []
        for pattern in self.patterns:
            for match in pattern.regex.finditer(text):
                span = match.span()
                if any(span[0] < end and start < span[1] for start, end in claimed):
                    continue
                parsed = self._build(text, match, pattern, base_offset)
                if parsed is None:
                    continue
                claimed.append(span)
                ranges.append(parsed)

        ranges.sort(key=lambda r: r.position)
        return ranges

    def parse_one(self, text: str, sex: Optional[str] = None) -> Optional[ReferenceRange]:
        """The range printed in a single fragment (gender-aware when several)."""
        return self.select_for_gender(self.parse(text), sex)

    def _build(self, text: str, match: re.Match, pattern: RangePattern, base_offset: int) -> Optional[ReferenceRange]:
        numbers = [g for g in match.groups() if g is not None and re.match(r'\d', g)]
        try:
            values = [_to_float(n) for n in numbers]
        except ValueError:
            return None
        if not values:
            return None

        min_value = max_value = None
        if pattern.kind == RangeKind.RANGE:
            if len(values) < 2:
                return None
            min_value, max_value = values[0], values[1]
            if min_value > max_value:
                logger.debug(f"Discarding inverted range '{match.group(0)}'")
                return None
        elif pattern.kind == RangeKind.UPPER_LIMIT:
            max_value = values[0]
        elif pattern.kind == RangeKind.LOWER_LIMIT:
            min_value = values[0]
        else:
            min_value = max_value = values[0]

        line_start = text.rfind('\n', 0, match.start()) + 1
        line_end = text.find('\n', match.end())
        line = text[line_start:line_end if line_end != -1 else len(text)]

        if 'gender' in pattern.regex.groupindex:
            gender = detect_gender(match.group('gender') + ':')
        else:
            gender = detect_gender(text[line_start:match.start()])

        unit_match = _UNIT_RE.search(text[match.end():match.end() + 15])
        unit = unit_match.group(1) if unit_match else None

        confidence = self._confidence(pattern.confidence, line, unit, max_value)
        if confidence < MIN_RANGE_CONFIDENCE:
            return None

        return ReferenceRange(
            kind=pattern.kind,
            min_value=min_value,
            max_value=max_value,
            unit=unit,
            gender_specific=gender,
            raw_text=' '.join(match.group(0).split()),
            confidence=confidence,
            position=base_offset + match.start(),
        )

    @staticmethod
    def _confidence(base: float, line: str, unit: Optional[str], max_value: Optional[float]) -> float:
        confidence = base
        if '|' in line or '   ' in line or '\t' in line:
            confidence += 10
        lowered = line.lower()
        if 'referencia' in lowered or 'normal' in lowered or 'valor' in lowered:
            confidence += 10
        if unit:
            confidence += 12
        if ABNORMAL_MARKER in line:
            confidence += 20
        if max_value is not None and max_value > 10000:
            confidence -= 20
        return max(0.0, min(100.0, confidence))

    @staticmethod
    def select_for_gender(ranges: Sequence[ReferenceRange], sex: Optional[str] = None) -> Optional[ReferenceRange]:
        """
        Range matching the patient's sex, else a range without gender.

        None when every candidate is gender-specific and none matches the
        patient: a male range is never applied to a patient of unknown sex.
        """
        if not ranges:
            return None
        if sex:
            for candidate in ranges:
                if candidate.gender_specific == sex.upper():
                    return candidate
        for candidate in ranges:
            if candidate.gender_specific is None:
                return candidate
        return None

    @staticmethod
    def only_gender_specific(ranges: Sequence[ReferenceRange]) -> bool:
        """True when ranges were printed but each belongs to one sex."""
        return bool(ranges) and all(r.gender_specific for r in ranges)

    @staticmethod
    def match_to(
        position: int,
        ranges: Sequence[ReferenceRange],
        max_distance: Optional[int] = None,
    ) -> Optional[ReferenceRange]:
        """
        Nearest range printed after a position, within max_distance chars.
        """
        if max_distance is None:
            max_distance = threshold_settings.REFERENCE_RANGE_MAX_DISTANCE
        following = [r for r in ranges if 0 <= r.position - position <= max_distance]
        if not following:
            return None
        return min(following, key=lambda r: (r.position - position, -r.confidence))


def parse_reference_ranges(text: str) -> List[ReferenceRange]:
    """Convenience function for one-off parsing."""
    return ReferenceRangeParser().parse(text)
