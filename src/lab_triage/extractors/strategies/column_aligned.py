# ============================================================================
# src/lab_triage/extractors/strategies/column_aligned.py
# ============================================================================
"""
Column-aligned rows, the dominant layout:

    GLICEMIA EN AYUNO (BASAL)   269 (mg/dL) [*]   74 - 106   Hexoquinasa
"""

import re
from typing import Optional

from ...core.context.enums import ResultKind
from .base import ExtractionStrategy, MatchContext, ParsedValue, VALUE_RE, UNIT_RE, FLAG_RE, REST_RE

_COLUMN_ROW = re.compile(rf'^[ \t]+{VALUE_RE}{UNIT_RE}{FLAG_RE}{REST_RE}')


class ColumnAlignedStrategy(ExtractionStrategy):
    name = "column_aligned"
    base_confidence = 0.95
    result_kind = ResultKind.NUMERIC

    def accepts(self, context: MatchContext) -> bool:
        return not context.match.marker.calculated

    def parse(self, context: MatchContext) -> Optional[ParsedValue]:
        return self.parse_numeric_match(_COLUMN_ROW.match(context.tail))
