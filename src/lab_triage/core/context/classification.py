# ============================================================================
# src/lab_triage/core/context/classification.py
# ============================================================================
"""
Clinical assessment records
- SeverityClassification per accepted result
- CriticalValueAlert per crossed safety cutoff
- PriorityScore per document
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

from .enums import Severity, PriorityLevel
from .reference import CriticalThreshold


@dataclass(frozen=True)
class SeverityClassification:
    severity: Severity
    is_abnormal: bool
    is_critical_value: bool = False
    deviation_percent: float = 0.0
    priority_weight: int = 0
    reasoning: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "isAbnormal": self.is_abnormal,
            "isCriticalValue": self.is_critical_value,
            "deviationPercent": self.deviation_percent,
            "priorityWeight": self.priority_weight,
            "reasoning": self.reasoning,
        }


@dataclass(frozen=True)
class CriticalValueAlert:
    marker: str
    threshold: CriticalThreshold
    value: float
    alert_text: str
    direction: str  # "high" / "low"
    exam_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "marker": self.marker,
            "examName": self.exam_name,
            "threshold": self.threshold.to_dict(),
            "value": self.value,
            "direction": self.direction,
            "alertText": self.alert_text,
        }


@dataclass(frozen=True)
class ScoreBreakdown:
    severity_score: float = 0.0
    critical_value_bonus: float = 0.0
    marker_weight_bonus: float = 0.0
    age_factor_bonus: float = 0.0
    multiplicity_bonus: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severityScore": self.severity_score,
            "criticalValueBonus": self.critical_value_bonus,
            "markerWeightBonus": self.marker_weight_bonus,
            "ageFactorBonus": self.age_factor_bonus,
            "multiplicityBonus": self.multiplicity_bonus,
        }


@dataclass(frozen=True)
class PriorityScore:
    total_score: float
    priority_level: PriorityLevel
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)
    reasoning: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalScore": self.total_score,
            "priorityLevel": self.priority_level.value,
            "breakdown": self.breakdown.to_dict(),
            "reasoning": list(self.reasoning),
        }
