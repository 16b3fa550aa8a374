# ============================================================================
# src/lab_triage/clinical/__init__.py
# ============================================================================
"""
Clinical assessment: severity, critical values, priority and summary
"""

from .critical_thresholds import CriticalThresholdChecker, format_value
from .severity_classifier import SeverityClassifier, PRIORITY_WEIGHTS, bucket_deviation, classify_result
from .priority_scorer import PriorityScorer
from .summary import build_summary, recommended_action
