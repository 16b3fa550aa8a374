# ============================================================================
# src/lab_triage/__init__.py
# ============================================================================
"""
Lab report triage for Chilean clinical laboratory PDFs.

Extracts patient identity (RUT) and lab results from decoded report text,
grades each result against its reference range and critical cutoffs, and
ranks the report for clinical follow-up.
"""

__version__ = "0.1.0"

from .core.context import PatientContext, PipelineResult
from .core.pipeline import LabReportPipeline, process_lab_report, process_pdf
from .utils.exceptions import DecodingFailure, ConfigurationError, LabTriageError
