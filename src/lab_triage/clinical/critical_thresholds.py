# ============================================================================
# src/lab_triage/clinical/critical_thresholds.py
# ============================================================================
"""
Critical Threshold Checker

Independent safety net: fixed clinical cutoffs that flag a value as
critical whatever the printed reference range says. Guards against
missing or malformed reference range text.

A value is critical when it is printed in the threshold's unit (or one of
its aliases) and value >= high or value <= low. Values in any other unit
are never compared; no unit conversion is attempted.
"""

import logging
from typing import List, Mapping, Optional, Sequence

from ..constants.critical_values import load_critical_thresholds
from ..core.context.classification import CriticalValueAlert
from ..core.context.extracted_result import ExtractedResult
from ..core.context.reference import CriticalThreshold

logger = logging.getLogger(__name__)


def format_value(value: float) -> str:
    """269.0 -> '269', 7.25 -> '7.25'"""
    return f"{value:g}"


class CriticalThresholdChecker:
    """
    Check values against critical thresholds keyed by marker system code.

    Usage:
        checker = CriticalThresholdChecker()
        alert = checker.check("glucose_fasting", 269, "mg/dL")
        if alert:
            print(alert.alert_text)
    """

    def __init__(self, thresholds: Optional[Mapping[str, CriticalThreshold]] = None):
        self.thresholds = thresholds if thresholds is not None else load_critical_thresholds()

    def threshold_for(self, marker_type: Optional[str]) -> Optional[CriticalThreshold]:
        if not marker_type:
            return None
        return self.thresholds.get(marker_type)

    @staticmethod
    def crossed(threshold: CriticalThreshold, value: float) -> Optional[str]:
        """'high' / 'low' when a cutoff is met, else None."""
        if threshold.high is not None and value >= threshold.high:
            return "high"
        if threshold.low is not None and value <= threshold.low:
            return "low"
        return None

    def check(
        self,
        marker_type: Optional[str],
        value: Optional[float],
        unit: Optional[str] = None,
        exam_name: Optional[str] = None,
    ) -> Optional[CriticalValueAlert]:
        """
        Check one value.

        Args:
            marker_type: Marker system code
            value: Numeric value
            unit: Unit as printed; a unit the threshold does not accept
                means the cutoffs do not apply (no conversion)
            exam_name: Printed exam name for the alert

        Returns:
            CriticalValueAlert or None
        """
        threshold = self._applicable(marker_type, value, unit)
        if threshold is None:
            return None

        direction = self.crossed(threshold, value)
        if direction is None:
            return None

        alert = CriticalValueAlert(
            marker=marker_type,
            threshold=threshold,
            value=value,
            alert_text=self.generate_alert_text(threshold, value, unit),
            direction=direction,
            exam_name=exam_name,
        )
        logger.warning(f"Critical value: {marker_type}={format_value(value)} ({direction})")
        return alert

    def is_critical(self, marker_type: Optional[str], value: Optional[float], unit: Optional[str] = None) -> bool:
        threshold = self._applicable(marker_type, value, unit)
        if threshold is None:
            return False
        return self.crossed(threshold, value) is not None

    def _applicable(
        self,
        marker_type: Optional[str],
        value: Optional[float],
        unit: Optional[str],
    ) -> Optional[CriticalThreshold]:
        threshold = self.threshold_for(marker_type)
        if threshold is None or value is None:
            return None
        if not threshold.accepts_unit(unit):
            logger.warning(
                f"Unit mismatch for {marker_type}: got '{unit}', threshold is in "
                f"'{threshold.unit}'; critical cutoffs not applied"
            )
            return None
        return threshold

    def scan(self, results: Sequence[ExtractedResult]) -> List[CriticalValueAlert]:
        """Alerts for every numeric result crossing a cutoff, in result order."""
        alerts = []
        for result in results:
            alert = self.check(result.system_code, result.numeric_value, result.unit, result.exam_name)
            if alert:
                alerts.append(alert)
        return alerts

    @staticmethod
    def generate_alert_text(threshold: CriticalThreshold, value: float, unit: Optional[str] = None) -> str:
        """'INMEDIATO: Glicemia crítica - 269 mg/dL. Riesgo de coma ...'"""
        return (
            f"{threshold.urgency_level.label}: {threshold.description} - "
            f"{format_value(value)} {unit or threshold.unit}. {threshold.clinical_significance}"
        )
