# ============================================================================
# src/lab_triage/utils/__init__.py
# ============================================================================
"""
Utility modules for the lab triage engine.
"""

from .exceptions import (
    LabTriageError,
    ConfigurationError,
    DecodingFailure,
    ValidationError,
    PipelineWarning,
    NoIdentityFound,
    NoMarkersFound,
    LowConfidenceExtraction,
    GenderRangeUnresolved,
)
from .logging import setup_logging, get_logger, LogContext, RutRedactionFilter, log_performance
from .rut import clean_rut, calculate_check_digit, validate_rut, format_rut, anonymize_rut, parse_rut
