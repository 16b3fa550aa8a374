# ============================================================================
# src/lab_triage/core/context/extracted_result.py
# ============================================================================
"""
Single extracted lab result
- Value, unit, reference text, method, sample type
- Provenance (strategy, position, snippet) and confidence
- Parsed reference range and severity once accepted
"""

from dataclasses import dataclass
from typing import Optional, Union, Dict, Any, TYPE_CHECKING

from .enums import ResultKind
from .reference import ReferenceRange

if TYPE_CHECKING:
    from .classification import SeverityClassification


@dataclass(frozen=True)
class ExtractedResult:
    exam_name: str
    raw_value: Union[float, str]
    unit: Optional[str] = None
    reference_range_text: Optional[str] = None
    method: Optional[str] = None
    sample_type: str = "SUERO"
    has_abnormal_marker: bool = False
    confidence: float = 0.0  # 0-1
    source_position: int = 0
    context_snippet: str = ""
    result_kind: ResultKind = ResultKind.NUMERIC
    strategy: str = "unknown"

    system_code: Optional[str] = None
    reference_range: Optional[ReferenceRange] = None
    range_needs_sex: bool = False  # only gender-specific ranges, none for this patient
    classification: Optional["SeverityClassification"] = None

    @property
    def numeric_value(self) -> Optional[float]:
        if isinstance(self.raw_value, bool):
            return None
        if isinstance(self.raw_value, (int, float)):
            return float(self.raw_value)
        return None

    @property
    def dedup_key(self) -> str:
        """Canonical code, else case/space-normalized exam name."""
        if self.system_code:
            return self.system_code
        return " ".join(self.exam_name.upper().split())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "examName": self.exam_name,
            "systemCode": self.system_code,
            "rawValue": self.raw_value,
            "unit": self.unit,
            "referenceRangeText": self.reference_range_text,
            "referenceRange": self.reference_range.to_dict() if self.reference_range else None,
            "rangeNeedsSex": self.range_needs_sex,
            "method": self.method,
            "sampleType": self.sample_type,
            "hasAbnormalMarker": self.has_abnormal_marker,
            "confidence": round(self.confidence, 4),
            "sourcePosition": self.source_position,
            "contextSnippet": self.context_snippet,
            "resultKind": self.result_kind.value,
            "strategy": self.strategy,
            "classification": self.classification.to_dict() if self.classification else None,
        }
