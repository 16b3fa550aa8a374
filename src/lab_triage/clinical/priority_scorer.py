# ============================================================================
# src/lab_triage/clinical/priority_scorer.py
# ============================================================================
"""
Priority Scorer

Aggregates the classified results of one report into a single triage
score and a HIGH / MEDIUM / LOW level:

    per abnormal marker:  severity points
                        + critical bonus (when critical)
                        + severity points x (clinical weight - 1)
    multiplicity:         min((abnormal count - 1) x step, cap)
    age:                  base x (age factor - 1)

Every bonus that fires is listed in the reasoning trail.
"""

import logging
import statistics as stats
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Any

from ..config import scoring_settings, ScoringSettings
from ..constants.canonical_markers import get_clinical_weight
from ..core.context.classification import PriorityScore, ScoreBreakdown, SeverityClassification
from ..core.context.enums import PriorityLevel, Severity
from ..core.context.extracted_result import ExtractedResult
from ..core.context.metadata import PatientContext

logger = logging.getLogger(__name__)

ScoredItem = Tuple[Optional[str], SeverityClassification]

_SEVERITY_LABELS = {
    Severity.MILD: "leve",
    Severity.MODERATE: "moderada",
    Severity.SEVERE: "severa",
}


class PriorityScorer:
    """
    Score a report for follow-up urgency.

    Usage:
        scorer = PriorityScorer()
        score = scorer.score([(r.system_code, r.classification) for r in results], patient)
    """

    def __init__(
        self,
        settings: Optional[ScoringSettings] = None,
        weight_lookup: Optional[Callable[[Optional[str]], float]] = None,
    ):
        self.settings = settings or scoring_settings
        self.weight_lookup = weight_lookup or get_clinical_weight

    def severity_points(self, severity: Severity) -> float:
        return {
            Severity.NORMAL: 0.0,
            Severity.MILD: self.settings.MILD_POINTS,
            Severity.MODERATE: self.settings.MODERATE_POINTS,
            Severity.SEVERE: self.settings.SEVERE_POINTS,
        }[severity]

    def age_factor(self, age: Optional[int]) -> float:
        """Step function of age; 1.0 when age is unknown."""
        if age is None or age <= self.settings.AGE_BAND_YOUNG_MAX:
            return 1.0
        if age <= self.settings.AGE_BAND_ADULT_MAX:
            return self.settings.AGE_FACTOR_ADULT
        if age <= self.settings.AGE_BAND_SENIOR_MAX:
            return self.settings.AGE_FACTOR_SENIOR
        return self.settings.AGE_FACTOR_ELDERLY

    def level_for(self, total: float) -> PriorityLevel:
        if total >= self.settings.HIGH_PRIORITY_THRESHOLD:
            return PriorityLevel.HIGH
        if total >= self.settings.MEDIUM_PRIORITY_THRESHOLD:
            return PriorityLevel.MEDIUM
        return PriorityLevel.LOW

    def score(self, classifications: Iterable[ScoredItem], patient: Optional[PatientContext] = None) -> PriorityScore:
        """
        Args:
            classifications: (system_code, SeverityClassification) pairs
            patient: Optional age/sex context

        Returns:
            PriorityScore with breakdown and Spanish reasoning
        """
        severity_score = 0.0
        critical_bonus = 0.0
        weight_bonus = 0.0
        abnormal_count = 0
        reasoning: List[str] = []

        for code, classification in classifications:
            if classification is None or not classification.is_abnormal:
                continue
            abnormal_count += 1
            label = code or "marcador sin código"

            points = self.severity_points(classification.severity)
            severity_score += points
            reasoning.append(
                f"{label}: severidad {_SEVERITY_LABELS.get(classification.severity, 'normal')} (+{points:g})"
            )

            if classification.is_critical_value:
                critical_bonus += self.settings.CRITICAL_VALUE_BONUS
                reasoning.append(f"{label}: valor crítico (+{self.settings.CRITICAL_VALUE_BONUS:g})")

            weight = self.weight_lookup(code)
            if weight > 1.0 and points > 0:
                bonus = points * (weight - 1.0)
                weight_bonus += bonus
                reasoning.append(f"{label}: peso clínico {weight:g} (+{bonus:.1f})")

        multiplicity = 0.0
        if abnormal_count > 1:
            multiplicity = min((abnormal_count - 1) * self.settings.MULTIPLICITY_STEP, self.settings.MULTIPLICITY_CAP)
            reasoning.append(f"{abnormal_count} valores anormales (+{multiplicity:g})")

        base = severity_score + critical_bonus + weight_bonus + multiplicity

        age = patient.age if patient else None
        factor = self.age_factor(age)
        age_bonus = base * (factor - 1.0)
        if age_bonus > 0:
            reasoning.append(f"Edad {age} años: factor {factor:g} (+{age_bonus:.1f})")

        if abnormal_count == 0:
            reasoning.append("Sin valores anormales")

        total = round(base + age_bonus, 1)
        level = self.level_for(total)
        reasoning.append(f"Puntaje total {total:g}: prioridad {level.value}")

        logger.debug(f"Priority score {total} ({level.value}), {abnormal_count} abnormal marker(s)")

        return PriorityScore(
            total_score=total,
            priority_level=level,
            breakdown=ScoreBreakdown(
                severity_score=round(severity_score, 1),
                critical_value_bonus=round(critical_bonus, 1),
                marker_weight_bonus=round(weight_bonus, 1),
                age_factor_bonus=round(age_bonus, 1),
                multiplicity_bonus=round(multiplicity, 1),
            ),
            reasoning=reasoning,
        )

    def score_results(self, results: Sequence[ExtractedResult], patient: Optional[PatientContext] = None) -> PriorityScore:
        """Score classified ExtractedResults."""
        return self.score(
            ((r.system_code, r.classification) for r in results if r.classification is not None),
            patient,
        )

    def score_batch(
        self,
        items: Sequence[Tuple[str, Sequence[ScoredItem], Optional[PatientContext]]],
    ) -> List[Tuple[str, PriorityScore]]:
        """
        Score many reports.

        Args:
            items: (report key, classifications, patient) triples

        Returns:
            (report key, PriorityScore) ordered by score desc, then key
        """
        scored = [(key, self.score(classifications, patient)) for key, classifications, patient in items]
        scored.sort(key=lambda pair: (-pair[1].total_score, pair[0]))
        return scored

    @staticmethod
    def statistics(scores: Sequence[PriorityScore]) -> Dict[str, Any]:
        """Counts per level plus average and max score."""
        totals = [s.total_score for s in scores]
        return {
            "total": len(scores),
            "high": sum(1 for s in scores if s.priority_level == PriorityLevel.HIGH),
            "medium": sum(1 for s in scores if s.priority_level == PriorityLevel.MEDIUM),
            "low": sum(1 for s in scores if s.priority_level == PriorityLevel.LOW),
            "averageScore": round(stats.mean(totals), 1) if totals else 0.0,
            "maxScore": max(totals) if totals else 0.0,
        }
