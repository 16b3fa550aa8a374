# ============================================================================
# src/lab_triage/utils/exceptions.py
# ============================================================================
"""
Custom exceptions for the lab triage engine.

Only decoding failures and invalid configuration propagate. The
PipelineWarning family describes non-fatal conditions; the pipeline records
them on its result instead of raising them.
"""

from typing import Any, Dict, Optional


class LabTriageError(Exception):
    """Base exception for all lab triage errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(LabTriageError):
    """Invalid configuration or missing/corrupt reference tables."""
    pass


class DecodingFailure(LabTriageError):
    """Source document could not be decoded (corrupt, unreadable, encrypted)."""

    def __init__(self, message: str, source: Optional[str] = None, reason: str = "corrupt"):
        super().__init__(message, {"source": source, "reason": reason})
        self.source = source
        self.reason = reason


class ValidationError(LabTriageError):
    """Invalid caller input (e.g. impossible patient age)."""
    pass


class PipelineWarning(LabTriageError):
    """Non-fatal condition surfaced on the pipeline result."""

    code = "pipeline_warning"

    def to_dict(self) -> Dict[str, Any]:
        data = {"code": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


class NoIdentityFound(PipelineWarning):
    """No patient RUT candidate could be recovered."""
    code = "no_identity_found"


class NoMarkersFound(PipelineWarning):
    """No lab marker survived extraction and filtering."""
    code = "no_markers_found"


class LowConfidenceExtraction(PipelineWarning):
    """One or more accepted results fall below the review confidence."""
    code = "low_confidence_extraction"


class GenderRangeUnresolved(PipelineWarning):
    """Only gender-specific ranges were printed and the patient's sex does not pick one."""
    code = "gender_range_unresolved"
