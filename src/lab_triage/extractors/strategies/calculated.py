# ============================================================================
# src/lab_triage/extractors/strategies/calculated.py
# ============================================================================
"""
Derived values the laboratory computes from other results:

    COLESTEROL LDL (CALCULO)   120 (mg/dL)   1 - 150
    UREMIA (CALCULO)  32,1 (mg/dL)
"""

import re
from typing import Optional

from ...core.context.enums import ResultKind
from ...utils.text_normalizer import fold_for_lookup
from .base import ExtractionStrategy, MatchContext, ParsedValue, VALUE_RE, UNIT_RE, FLAG_RE, REST_RE

_CALCULATED_ROW = re.compile(rf'^(?:[ \t]*[:=])?[ \t]*{VALUE_RE}{UNIT_RE}{FLAG_RE}{REST_RE}')


class CalculatedStrategy(ExtractionStrategy):
    name = "calculated"
    base_confidence = 0.85
    result_kind = ResultKind.CALCULATED

    def accepts(self, context: MatchContext) -> bool:
        if context.match.marker.calculated:
            return True
        return 'CALCULO' in fold_for_lookup(context.exam_name)

    def parse(self, context: MatchContext) -> Optional[ParsedValue]:
        return self.parse_numeric_match(_CALCULATED_ROW.match(context.tail))
