# ============================================================================
# src/lab_triage/clinical/summary.py
# ============================================================================
"""
Report summary and recommended follow-up action
"""

from typing import Sequence

from ..core.context.classification import CriticalValueAlert, PriorityScore
from ..core.context.enums import PriorityLevel, Severity
from ..core.context.extracted_result import ExtractedResult
from ..core.context.pipeline_result import ReportSummary

ACTION_NO_DATA = "Sin datos accionables - Requiere revisión manual del documento"
ACTION_CRITICAL = "Contactar al paciente inmediatamente - Valores críticos detectados"
ACTION_HIGH = "Contactar al paciente dentro de 24 horas"
ACTION_MEDIUM = "Contactar al paciente en 3-5 días"
ACTION_ROUTINE = "Seguimiento de rutina en 1-2 semanas"
ACTION_NORMAL = "Valores normales - No requiere acción inmediata"


def recommended_action(total_markers: int, abnormal_count: int, critical_count: int, score: PriorityScore) -> str:
    if total_markers == 0:
        return ACTION_NO_DATA
    if critical_count > 0:
        return ACTION_CRITICAL
    if score.priority_level == PriorityLevel.HIGH:
        return ACTION_HIGH
    if score.priority_level == PriorityLevel.MEDIUM:
        return ACTION_MEDIUM
    if abnormal_count > 0:
        return ACTION_ROUTINE
    return ACTION_NORMAL


def build_summary(
    results: Sequence[ExtractedResult],
    alerts: Sequence[CriticalValueAlert],
    score: PriorityScore,
) -> ReportSummary:
    classified = [r.classification for r in results if r.classification is not None]
    abnormal_count = sum(1 for c in classified if c.is_abnormal)
    highest = max((c.severity for c in classified), key=lambda s: s.rank, default=Severity.NORMAL)

    return ReportSummary(
        total_markers=len(results),
        abnormal_count=abnormal_count,
        critical_count=len(alerts),
        highest_severity=highest,
        recommended_action_text=recommended_action(len(results), abnormal_count, len(alerts), score),
    )
