# ============================================================================
# src/lab_triage/constants/critical_values.py
# ============================================================================
"""
Critical Thresholds & Severity Overrides
- Hard safety cutoffs that trigger immediate clinical attention
- Marker-specific severity cutoffs that replace deviation bucketing
Both loaded from the knowledge directory.
"""

import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, List
from dataclasses import dataclass

from ..config import base_settings
from ..core.context.enums import Severity, UrgencyLevel
from ..core.context.reference import CriticalThreshold
from ..utils.exceptions import ConfigurationError
from ..utils.parsing import units_match
from .canonical_markers import _read_json

logger = logging.getLogger(__name__)

THRESHOLDS_FILE = "critical_thresholds.json"
OVERRIDES_FILE = "severity_overrides.json"


@dataclass(frozen=True)
class OverrideRule:
    severity: Severity
    above: Optional[float] = None
    below: Optional[float] = None

    def matches(self, value: float) -> bool:
        if self.above is not None and value > self.above:
            return True
        if self.below is not None and value < self.below:
            return True
        return False


@dataclass(frozen=True)
class SeverityOverride:
    marker_type: str
    rules: Tuple[OverrideRule, ...]
    default: Severity = Severity.MILD
    unit: Optional[str] = None  # None: cutoffs are unit-free
    unit_aliases: Tuple[str, ...] = ()

    def accepts_unit(self, unit: Optional[str]) -> bool:
        return units_match(unit, self.unit, self.unit_aliases)

    def grade(self, value: float) -> Severity:
        """First matching rule wins; rules are ordered most severe first."""
        for rule in self.rules:
            if rule.matches(value):
                return rule.severity
        return self.default


@lru_cache(maxsize=None)
def load_critical_thresholds(path: Optional[Path] = None) -> Mapping[str, CriticalThreshold]:
    """
    Load critical thresholds keyed by marker system code.

    Several system codes can share one threshold (e.g. all glucose markers).

    Raises:
        ConfigurationError: file missing, corrupt, or entries malformed
    """
    path = Path(path) if path else base_settings.knowledge_file(THRESHOLDS_FILE)
    data = _read_json(path)

    table = {}
    for entry in data.get("thresholds", []):
        try:
            threshold = CriticalThreshold(
                marker_type=entry["marker_type"],
                unit=entry["unit"],
                urgency_level=UrgencyLevel(entry["urgency"]),
                description=entry["description"],
                clinical_significance=entry["clinical_significance"],
                high=entry.get("high"),
                low=entry.get("low"),
                unit_aliases=tuple(entry.get("unit_aliases", ())),
            )
        except (KeyError, ValueError) as e:
            raise ConfigurationError(f"Invalid critical threshold {entry!r}: {e}") from e

        if threshold.high is None and threshold.low is None:
            raise ConfigurationError(f"Critical threshold {threshold.marker_type} has no cutoff")

        for code in entry.get("applies_to") or [threshold.marker_type]:
            table[code] = threshold

    if not table:
        raise ConfigurationError(f"No critical thresholds defined in {path}")

    logger.info(f"Loaded critical thresholds for {len(table)} marker codes")
    return MappingProxyType(table)


@lru_cache(maxsize=None)
def load_severity_overrides(path: Optional[Path] = None) -> Mapping[str, SeverityOverride]:
    """
    Load marker-specific severity overrides keyed by marker system code.

    Raises:
        ConfigurationError: file missing, corrupt, or entries malformed
    """
    path = Path(path) if path else base_settings.knowledge_file(OVERRIDES_FILE)
    data = _read_json(path)

    table = {}
    for entry in data.get("overrides", []):
        try:
            rules: List[OverrideRule] = [
                OverrideRule(
                    severity=Severity(rule["severity"]),
                    above=rule.get("above"),
                    below=rule.get("below"),
                )
                for rule in entry["rules"]
            ]
            override = SeverityOverride(
                marker_type=entry["marker_type"],
                rules=tuple(rules),
                default=Severity(entry.get("default", "mild")),
                unit=entry.get("unit"),
                unit_aliases=tuple(entry.get("unit_aliases", ())),
            )
        except (KeyError, ValueError) as e:
            raise ConfigurationError(f"Invalid severity override {entry!r}: {e}") from e

        for code in entry.get("applies_to") or [override.marker_type]:
            table[code] = override

    return MappingProxyType(table)


def get_critical_threshold(system_code: Optional[str]) -> Optional[CriticalThreshold]:
    if not system_code:
        return None
    return load_critical_thresholds().get(system_code)


def get_severity_override(system_code: Optional[str]) -> Optional[SeverityOverride]:
    if not system_code:
        return None
    return load_severity_overrides().get(system_code)


def reload_critical_values() -> None:
    load_critical_thresholds.cache_clear()
    load_severity_overrides.cache_clear()
