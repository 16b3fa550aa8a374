# ============================================================================
# src/lab_triage/core/context/pipeline_result.py
# ============================================================================
"""
Aggregate pipeline output consumed by presentation and storage layers
"""

import json
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from .enums import Severity, ReviewRecommendation
from .identity import IdentityCandidate
from .extracted_result import ExtractedResult
from .classification import CriticalValueAlert, PriorityScore


@dataclass(frozen=True)
class ReportSummary:
    total_markers: int
    abnormal_count: int
    critical_count: int
    highest_severity: Severity
    recommended_action_text: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalMarkers": self.total_markers,
            "abnormalCount": self.abnormal_count,
            "criticalCount": self.critical_count,
            "highestSeverity": self.highest_severity.value,
            "recommendedActionText": self.recommended_action_text,
        }


@dataclass(frozen=True)
class DocumentConfidence:
    overall_score: float  # 0-100
    components: Dict[str, float]
    recommendation: ReviewRecommendation
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "components": dict(self.components),
            "recommendation": self.recommendation.value,
            "reasons": list(self.reasons),
        }


@dataclass
class PipelineResult:
    identity: Optional[IdentityCandidate]
    results: List[ExtractedResult]
    critical_values: List[CriticalValueAlert]
    priority_score: PriorityScore
    summary: ReportSummary
    confidence: Optional[DocumentConfidence] = None
    warnings: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity.to_dict() if self.identity else None,
            "results": [r.to_dict() for r in self.results],
            "criticalValues": [a.to_dict() for a in self.critical_values],
            "priorityScore": self.priority_score.to_dict(),
            "summary": self.summary.to_dict(),
            "confidence": self.confidence.to_dict() if self.confidence else None,
            "warnings": list(self.warnings),
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize deterministically (sorted keys) for storage and comparison."""
        return json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False, indent=indent)
