# ============================================================================
# src/lab_triage/core/context/__init__.py
# ============================================================================
"""
Data model shared by every pipeline stage
"""

from .enums import (
    Severity,
    PriorityLevel,
    ResultKind,
    SourceContext,
    RangeKind,
    UrgencyLevel,
    ReviewRecommendation,
)
from .document import RawDocument, DecodedDocument, NormalizedPage, NormalizedDocument, SampleSection
from .metadata import PatientContext
from .identity import IdentityCandidate, IdentityExtractionResult
from .reference import CanonicalMarker, CriticalThreshold, ReferenceRange, MarkerMatch
from .extracted_result import ExtractedResult
from .classification import SeverityClassification, CriticalValueAlert, ScoreBreakdown, PriorityScore
from .pipeline_result import ReportSummary, DocumentConfidence, PipelineResult
