# ============================================================================
# src/lab_triage/extractors/strategies/microscopy.py
# ============================================================================
"""
Urine sediment counts reported as a per-field range:

    LEUCOCITOS POR CAMPO   0 - 2   0 - 5
    HEMATIES POR CAMPO     2-4 x campo
"""

import re
from typing import Optional

from ...core.context.enums import ResultKind
from ...utils.parsing import split_abnormal_marker
from .base import ExtractionStrategy, MatchContext, ParsedValue, split_range_and_method

_FIELD_RANGE = re.compile(
    r'^[ \t:]*[ \t](?P<low>\d+)[ \t]*-[ \t]*(?P<high>\d+)(?![\d.,])'
    r'(?:[ \t]*(?P<unit>(?:por|x)[ \t]+campo))?'
    r'(?P<rest>.*)$',
    re.IGNORECASE,
)


class MicroscopyStrategy(ExtractionStrategy):
    name = "microscopy"
    base_confidence = 0.80
    result_kind = ResultKind.MICROSCOPY

    def accepts(self, context: MatchContext) -> bool:
        return context.match.marker.result_kind == ResultKind.MICROSCOPY

    def parse(self, context: MatchContext) -> Optional[ParsedValue]:
        match = _FIELD_RANGE.match(context.tail)
        if match is None:
            return None

        low, high = int(match.group('low')), int(match.group('high'))
        if low > high:
            return None

        rest, flagged = split_abnormal_marker(match.group('rest'))
        range_text, method = split_range_and_method(rest, word_range=True)
        unit = match.group('unit')
        return ParsedValue(
            raw_value=f"{low} - {high}",
            unit=' '.join(unit.lower().split()) if unit else context.match.marker.expected_unit,
            reference_range_text=range_text,
            method=method,
            has_abnormal_marker=flagged,
        )
