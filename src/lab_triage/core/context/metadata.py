# ============================================================================
# src/lab_triage/core/context/metadata.py
# ============================================================================
"""
Patient context supplied by the caller
- Optional age for score adjustment
- Optional sex for gender-specific reference ranges
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any

from ...utils.exceptions import ValidationError


@dataclass(frozen=True)
class PatientContext:
    age: Optional[int] = None
    sex: Optional[str] = None  # "M" or "F"

    def __post_init__(self):
        if self.age is not None and not (0 <= self.age <= 130):
            raise ValidationError(f"Invalid patient age: {self.age}")
        if self.sex is not None and self.sex.upper() not in ("M", "F"):
            raise ValidationError(f"Invalid patient sex: {self.sex}")
        if self.sex is not None:
            object.__setattr__(self, "sex", self.sex.upper())

    def to_dict(self) -> Dict[str, Any]:
        return {"age": self.age, "sex": self.sex}
