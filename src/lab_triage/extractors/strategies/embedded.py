# ============================================================================
# src/lab_triage/extractors/strategies/embedded.py
# ============================================================================
"""
Values glued to the marker name, as left by some PDF text layers:

    GLICEMIA EN AYUNO (BASAL)269(mg/dL)[*]74 - 106
"""

import re
from typing import Optional

from ...core.context.enums import ResultKind
from .base import ExtractionStrategy, MatchContext, ParsedValue, VALUE_RE, UNIT_RE, FLAG_RE, REST_RE

_GLUED_ROW = re.compile(rf'^(?![ \t]){VALUE_RE}{UNIT_RE}{FLAG_RE}{REST_RE}')


class EmbeddedStrategy(ExtractionStrategy):
    name = "embedded"
    base_confidence = 0.85
    result_kind = ResultKind.NUMERIC

    def accepts(self, context: MatchContext) -> bool:
        return not context.match.marker.calculated

    def parse(self, context: MatchContext) -> Optional[ParsedValue]:
        return self.parse_numeric_match(_GLUED_ROW.match(context.tail))
