# ============================================================================
# src/lab_triage/extractors/strategies/multiline.py
# ============================================================================
"""
Marker label alone on its line, value on the next non-empty line:

    HEMOGLOBINA GLICADA A1C
       7,2 (%) [*]   4 - 6
"""

import re
from typing import Optional

from ...core.context.enums import ResultKind
from .base import ExtractionStrategy, MatchContext, ParsedValue, VALUE_RE, UNIT_RE, FLAG_RE, REST_RE

# The value line must open with the number; a line opening with a name is the next row
_VALUE_LINE = re.compile(rf'^[ \t]*{VALUE_RE}{UNIT_RE}{FLAG_RE}{REST_RE}')


class MultiLineStrategy(ExtractionStrategy):
    name = "multi_line"
    base_confidence = 0.75
    result_kind = ResultKind.NUMERIC

    def accepts(self, context: MatchContext) -> bool:
        if context.match.marker.result_kind == ResultKind.MICROSCOPY:
            return False
        return context.tail.strip(' \t:') == ""

    def parse(self, context: MatchContext) -> Optional[ParsedValue]:
        for line, _ in context.following_lines:
            if line.strip():
                return self.parse_numeric_match(_VALUE_LINE.match(line))
        return None
