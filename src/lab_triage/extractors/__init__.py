# ============================================================================
# src/lab_triage/extractors/__init__.py
# ============================================================================
"""
Extraction Module

- PDF decoding (pdfplumber, layout preserved)
- Patient identity (Chilean RUT) extraction
- Canonical marker matching
- Value extraction strategies and reference range parsing
"""

from .pdf_text_extractor import PDFTextExtractor, extract_pdf_text
from .identity_extractor import IdentityExtractor, RUT_PATTERNS, classify_source_context, extract_identity
from .marker_matcher import MarkerMatcher, get_marker_matcher, reset_marker_matcher
from .reference_range_parser import ReferenceRangeParser, detect_gender, parse_reference_ranges
from .value_extractor import ValueExtractor
