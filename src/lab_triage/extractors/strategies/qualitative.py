# ============================================================================
# src/lab_triage/extractors/strategies/qualitative.py
# ============================================================================
"""
Word-valued results (serology, urine chemistry and appearance):

    R.P.R.       No reactivo    No reactivo
    NITRITOS     Positivo [*]   Negativo
    ASPECTO      Turbio         Claro
"""

import re
from typing import Optional

from ...core.context.enums import ResultKind
from ...utils.parsing import split_abnormal_marker
from .base import ExtractionStrategy, MatchContext, ParsedValue, split_range_and_method

# Longest first so "No reactivo" is not read as "Reactivo"
QUALITATIVE_VALUES = sorted([
    "No reactivo", "Reactivo", "Débilmente reactivo",
    "Negativo", "Positivo",
    "Claro", "Ligeramente turbio", "Turbio",
    "Amarillo claro", "Amarillo intenso", "Amarillo", "Ámbar", "Rojizo", "Pardo",
    "Ausente", "Presente", "Trazas", "Indicios", "Normal",
    "No se observan", "No se observa",
    "Escasa cantidad", "Escasos", "Escasa",
    "Regular cantidad", "Regular",
    "Abundante cantidad", "Abundantes", "Abundante",
], key=len, reverse=True)

_WORD_ROW = re.compile(
    r'^[ \t:]*[ \t](?P<value>'
    + '|'.join(re.escape(v) for v in QUALITATIVE_VALUES)
    + r')(?![A-Za-zÁÉÍÓÚÑáéíóúñ])(?P<rest>.*)$',
    re.IGNORECASE,
)


class QualitativeStrategy(ExtractionStrategy):
    name = "qualitative"
    base_confidence = 0.90
    result_kind = ResultKind.QUALITATIVE

    def accepts(self, context: MatchContext) -> bool:
        return not context.match.marker.calculated

    def parse(self, context: MatchContext) -> Optional[ParsedValue]:
        match = _WORD_ROW.match(context.tail)
        if match is None:
            return None

        rest, flagged = split_abnormal_marker(match.group('rest'))
        range_text, method = split_range_and_method(rest, word_range=True)
        return ParsedValue(
            raw_value=' '.join(match.group('value').split()).capitalize(),
            reference_range_text=range_text,
            method=method,
            has_abnormal_marker=flagged,
        )
