# ============================================================================
# src/lab_triage/core/context/enums.py
# ============================================================================
"""
Processing Enums
- Severity tiers and priority levels
- Result kinds and identity source contexts
- Critical urgency and review recommendations
"""

from enum import Enum


class Severity(str, Enum):
    NORMAL = "normal"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.NORMAL: 0,
    Severity.MILD: 1,
    Severity.MODERATE: 2,
    Severity.SEVERE: 3,
}


class PriorityLevel(str, Enum):
    HIGH = "HIGH"       # >= 80
    MEDIUM = "MEDIUM"   # 30 - 80
    LOW = "LOW"         # < 30


class ResultKind(str, Enum):
    NUMERIC = "numeric"
    QUALITATIVE = "qualitative"
    CALCULATED = "calculated"
    MICROSCOPY = "microscopy"


class SourceContext(str, Enum):
    HEADER = "header"
    FORM = "form"
    TABLE = "table"
    BODY = "body"


class RangeKind(str, Enum):
    RANGE = "range"
    UPPER_LIMIT = "upper_limit"
    LOWER_LIMIT = "lower_limit"
    EXACT = "exact"


class UrgencyLevel(str, Enum):
    IMMEDIATE = "immediate"
    URGENT = "urgent"
    PRIORITY = "priority"

    @property
    def label(self) -> str:
        return _URGENCY_LABELS[self]


_URGENCY_LABELS = {
    UrgencyLevel.IMMEDIATE: "INMEDIATO",
    UrgencyLevel.URGENT: "URGENTE",
    UrgencyLevel.PRIORITY: "PRIORITARIO",
}


class ReviewRecommendation(str, Enum):
    AUTO_APPROVE = "auto_approve"
    MANUAL_REVIEW = "manual_review"
    REJECT = "reject"
