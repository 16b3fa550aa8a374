# ============================================================================
# src/lab_triage/clinical/severity_classifier.py
# ============================================================================
"""
Severity Classifier

Assigns a severity tier to each accepted result:
1. Non-numeric results: normal, or mild when the lab flagged them [*]
2. No reference range: normal (the critical checker still runs); a result
   whose only ranges are for the other or an unknown sex says so
3. Inside the range: normal
4. Outside the range: the marker's override table when it has one and the
   value is printed in the override's unit,
   otherwise bucketed on deviation from the range
5. A critical value always ends up severe and abnormal
"""

import logging
from typing import Callable, Optional

from ..constants.critical_values import SeverityOverride, get_severity_override
from ..core.context.classification import SeverityClassification
from ..core.context.enums import Severity
from ..core.context.extracted_result import ExtractedResult
from ..core.context.reference import CanonicalMarker, ReferenceRange
from .critical_thresholds import CriticalThresholdChecker, format_value

logger = logging.getLogger(__name__)

PRIORITY_WEIGHTS = {
    Severity.NORMAL: 0,
    Severity.MILD: 1,
    Severity.MODERATE: 3,
    Severity.SEVERE: 5,
}

# deviation_percent lower bounds, checked in order
DEVIATION_BUCKETS = (
    (100.0, Severity.SEVERE),
    (50.0, Severity.MODERATE),
)

_SEVERITY_LABELS = {
    Severity.NORMAL: "normal",
    Severity.MILD: "leve",
    Severity.MODERATE: "moderada",
    Severity.SEVERE: "severa",
}


def bucket_deviation(deviation_percent: float) -> Severity:
    if deviation_percent <= 0:
        return Severity.NORMAL
    for lower_bound, severity in DEVIATION_BUCKETS:
        if deviation_percent >= lower_bound:
            return severity
    return Severity.MILD


class SeverityClassifier:
    """
    Classify results against their reference range.

    Usage:
        classifier = SeverityClassifier()
        classification = classifier.classify(result, result.reference_range)
    """

    def __init__(
        self,
        critical_checker: Optional[CriticalThresholdChecker] = None,
        override_lookup: Optional[Callable[[str], Optional[SeverityOverride]]] = None,
    ):
        self.critical_checker = critical_checker or CriticalThresholdChecker()
        self.override_lookup = override_lookup or get_severity_override

    def classify(
        self,
        result: ExtractedResult,
        reference_range: Optional[ReferenceRange] = None,
        marker: Optional[CanonicalMarker] = None,
    ) -> SeverityClassification:
        """
        Args:
            result: Accepted extracted result
            reference_range: Range to compare against (defaults to the result's)
            marker: Canonical marker (defaults to the result's system code)
        """
        if reference_range is None:
            reference_range = result.reference_range
        code = marker.system_code if marker else result.system_code
        value = result.numeric_value

        if value is None:
            return self._classify_non_numeric(result)

        is_critical = self.critical_checker.is_critical(code, value, result.unit)

        if reference_range is None:
            severity = Severity.NORMAL
            deviation_percent = 0.0
            if result.range_needs_sex:
                reasons = ["Rangos de referencia solo por sexo y ninguno aplica al paciente; requiere revisión"]
            else:
                reasons = ["Sin rango de referencia; no se evalúa desviación"]
        else:
            deviation_percent = round(reference_range.deviation(value) * 100, 1)
            severity, reasons = self._grade(code, value, result.unit, deviation_percent, reference_range)

        is_abnormal = deviation_percent > 0

        if is_critical:
            threshold = self.critical_checker.threshold_for(code)
            if severity != Severity.SEVERE:
                reasons.append(
                    f"Escalado a severa por valor crítico ({format_value(value)} {result.unit or threshold.unit})"
                )
            else:
                reasons.append(f"Valor crítico ({format_value(value)} {result.unit or threshold.unit})")
            severity = Severity.SEVERE
            is_abnormal = True

        return SeverityClassification(
            severity=severity,
            is_abnormal=is_abnormal,
            is_critical_value=is_critical,
            deviation_percent=deviation_percent,
            priority_weight=PRIORITY_WEIGHTS[severity],
            reasoning="; ".join(reasons),
        )

    def _grade(
        self,
        code: Optional[str],
        value: float,
        unit: Optional[str],
        deviation_percent: float,
        reference_range: ReferenceRange,
    ):
        if deviation_percent <= 0:
            return Severity.NORMAL, [f"Dentro del rango de referencia ({reference_range.raw_text})"]

        reasons = []
        override = self.override_lookup(code) if code else None
        if override is not None and not override.accepts_unit(unit):
            logger.debug(f"Severity override for {code} is in {override.unit}, value in {unit}; using deviation")
            reasons.append(f"Unidad {unit} distinta de {override.unit}; no se aplican umbrales específicos")
            override = None

        if override is not None:
            severity = override.grade(value)
            return severity, [
                f"Fuera de rango ({reference_range.raw_text}); severidad {_SEVERITY_LABELS[severity]} "
                f"según umbrales específicos de {override.marker_type}"
            ]

        severity = bucket_deviation(deviation_percent)
        reasons.append(
            f"Desviación de {deviation_percent:.1f}% respecto al rango ({reference_range.raw_text}); "
            f"severidad {_SEVERITY_LABELS[severity]}"
        )
        return severity, reasons

    @staticmethod
    def _classify_non_numeric(result: ExtractedResult) -> SeverityClassification:
        if result.has_abnormal_marker:
            return SeverityClassification(
                severity=Severity.MILD,
                is_abnormal=True,
                priority_weight=PRIORITY_WEIGHTS[Severity.MILD],
                reasoning=f"Resultado '{result.raw_value}' marcado [*] por el laboratorio",
            )
        return SeverityClassification(
            severity=Severity.NORMAL,
            is_abnormal=False,
            priority_weight=0,
            reasoning=f"Resultado '{result.raw_value}' sin marca de anormalidad",
        )


def classify_result(result: ExtractedResult) -> SeverityClassification:
    """Convenience function for one-off classification."""
    return SeverityClassifier().classify(result)
