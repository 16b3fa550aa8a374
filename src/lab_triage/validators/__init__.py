# ============================================================================
# src/lab_triage/validators/__init__.py
# ============================================================================
"""
Candidate validation: noise filtering and deduplication
"""

from .noise_filter import NoiseFilter
from .deduplicator import Deduplicator, selection_key
