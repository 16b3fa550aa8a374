# ============================================================================
# src/lab_triage/core/__init__.py
# ============================================================================
"""
Core components for the lab triage engine.
"""

from .context import (
    PatientContext,
    ExtractedResult,
    IdentityCandidate,
    ReferenceRange,
    SeverityClassification,
    PriorityScore,
    PipelineResult,
)
from .confidence import ConfidenceCalculator, DocumentConfidenceScorer
