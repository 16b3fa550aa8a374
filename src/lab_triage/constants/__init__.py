# ============================================================================
# src/lab_triage/constants/__init__.py
# ============================================================================
"""
Convenient imports for all reference data
"""

from .canonical_markers import (
    load_canonical_markers,
    get_markers_by_code,
    get_marker,
    get_clinical_weight,
    get_marker_weights,
    reload_canonical_markers,
)
from .critical_values import (
    OverrideRule,
    SeverityOverride,
    load_critical_thresholds,
    load_severity_overrides,
    get_critical_threshold,
    get_severity_override,
    reload_critical_values,
)
from .sample_types import (
    SAMPLE_TYPES,
    DEFAULT_SAMPLE_TYPE,
    BLOOD_ONLY_PARAMETERS,
    URINE_ONLY_PARAMETERS,
    preferred_sample_type,
    sample_type_matches,
)


def reload_reference_data() -> None:
    """Re-read every reference table on next access (no restart needed)."""
    reload_canonical_markers()
    reload_critical_values()
