# ============================================================================
# src/lab_triage/core/context/identity.py
# ============================================================================
"""
Patient identity candidates recovered from report text
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from .enums import SourceContext
from ...utils.rut import anonymize_rut


@dataclass(frozen=True)
class IdentityCandidate:
    raw_value: str
    formatted_value: str
    is_valid: bool
    confidence: float  # 0-100
    source_context: SourceContext
    position: int
    pattern_name: str = "unknown"
    context: str = ""

    @property
    def anonymized(self) -> str:
        return anonymize_rut(self.formatted_value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rawValue": self.raw_value,
            "formattedValue": self.formatted_value,
            "isValid": self.is_valid,
            "confidence": self.confidence,
            "sourceContext": self.source_context.value,
            "position": self.position,
        }


@dataclass
class IdentityExtractionResult:
    candidates: List[IdentityCandidate] = field(default_factory=list)
    best_match: Optional[IdentityCandidate] = None

    @property
    def found(self) -> bool:
        return self.best_match is not None

    @property
    def valid_candidates(self) -> List[IdentityCandidate]:
        return [c for c in self.candidates if c.is_valid]
