# ============================================================================
# src/lab_triage/core/context/reference.py
# ============================================================================
"""
Static reference entities and parsed reference ranges
- CanonicalMarker: code-identified lab test with its Spanish aliases
- CriticalThreshold: hard safety cutoff per marker
- ReferenceRange: normal interval as printed on the report
- MarkerMatch: one occurrence of a marker alias in text
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Dict, Any

from .enums import RangeKind, ResultKind, UrgencyLevel
from ...utils.parsing import units_match


@dataclass(frozen=True)
class CanonicalMarker:
    system_code: str
    display_name: str
    category: str
    clinical_priority_weight: float = 1.0
    expected_unit: Optional[str] = None
    aliases: Tuple[str, ...] = ()
    normal_range_text: Optional[str] = None
    result_kind: ResultKind = ResultKind.NUMERIC
    calculated: bool = False
    sample_types: Tuple[str, ...] = ()
    plausible_min: Optional[float] = None
    plausible_max: Optional[float] = None

    def is_plausible(self, value: float) -> bool:
        """True when the value sits inside the clinically plausible window."""
        if self.plausible_min is None and self.plausible_max is None:
            return False
        if self.plausible_min is not None and value < self.plausible_min:
            return False
        if self.plausible_max is not None and value > self.plausible_max:
            return False
        return True


@dataclass(frozen=True)
class CriticalThreshold:
    marker_type: str
    unit: str
    urgency_level: UrgencyLevel
    description: str
    clinical_significance: str
    high: Optional[float] = None
    low: Optional[float] = None
    unit_aliases: Tuple[str, ...] = ()  # numerically identical spellings (μUI/mL == mUI/L)

    def accepts_unit(self, unit: Optional[str]) -> bool:
        """Cutoffs only apply to values printed in this unit or an alias."""
        return units_match(unit, self.unit, self.unit_aliases)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "markerType": self.marker_type,
            "unit": self.unit,
            "high": self.high,
            "low": self.low,
            "urgencyLevel": self.urgency_level.value,
        }


@dataclass(frozen=True)
class ReferenceRange:
    kind: RangeKind
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    unit: Optional[str] = None
    gender_specific: Optional[str] = None  # "M" / "F"
    raw_text: str = ""
    confidence: float = 0.0  # 0-100
    position: int = 0

    @property
    def size(self) -> float:
        """Scale used to express a deviation as a fraction of the range."""
        if self.kind == RangeKind.RANGE and self.min_value is not None and self.max_value is not None:
            span = self.max_value - self.min_value
            if span > 0:
                return span
            return abs(self.max_value) or 1.0
        if self.kind == RangeKind.UPPER_LIMIT and self.max_value:
            return abs(self.max_value)
        if self.kind == RangeKind.LOWER_LIMIT and self.min_value:
            return abs(self.min_value)
        if self.kind == RangeKind.EXACT:
            anchor = self.min_value if self.min_value is not None else self.max_value
            return abs(anchor) if anchor else 1.0
        return 1.0

    def deviation(self, value: float) -> float:
        """max(0, (value - max)/size, (min - value)/size)"""
        size = self.size
        above = (value - self.max_value) / size if self.max_value is not None else 0.0
        below = (self.min_value - value) / size if self.min_value is not None else 0.0
        return max(0.0, above, below)

    def contains(self, value: float) -> bool:
        return self.deviation(value) <= 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "minValue": self.min_value,
            "maxValue": self.max_value,
            "unit": self.unit,
            "genderSpecific": self.gender_specific,
        }


@dataclass(frozen=True)
class MarkerMatch:
    marker: CanonicalMarker
    alias: str
    start: int
    end: int
