# ============================================================================
# src/lab_triage/core/confidence.py
# ============================================================================
"""
Confidence Scoring and Aggregation

Every confidence heuristic in the pipeline lives here:
- Identity candidates: pattern base + source/checksum/context adjustments (0-100)
- Extracted results: pattern base + context features (0-1)
- Document level: weighted components -> review recommendation (0-100)
"""

from typing import List, Dict, Optional
from enum import Enum
from dataclasses import dataclass
import statistics

from .context.enums import SourceContext, ReviewRecommendation, ResultKind
from .context.pipeline_result import DocumentConfidence


class AggregationMethod(Enum):
    """Methods for aggregating multiple confidence scores"""
    MINIMUM = "minimum"  # Most conservative (lowest score)
    AVERAGE = "average"  # Mean of all scores
    WEIGHTED_AVERAGE = "weighted_average"  # Weighted mean


# ----------------------------------------------------------------------------
# Identity candidates (0-100)
# ----------------------------------------------------------------------------

SOURCE_BONUS = {
    SourceContext.HEADER: 10.0,
    SourceContext.FORM: 15.0,
    SourceContext.TABLE: 5.0,
    SourceContext.BODY: -5.0,
}
CHECKSUM_VALID_BONUS = 20.0
CHECKSUM_INVALID_PENALTY = -30.0

# (keywords, bonus); first matching keyword of each group counts once
IDENTITY_CONTEXT_BONUSES = [
    (("paciente", "patient"), 10.0),
    (("rut", "cédula", "cedula"), 8.0),
    (("identificaci",), 5.0),
]
UNRELATED_FIELD_KEYWORDS = ("teléfono", "telefono", "dirección", "direccion", "fecha", "hora")
UNRELATED_FIELD_PENALTY = -10.0


@dataclass(frozen=True)
class IdentityFeatures:
    source_context: SourceContext
    checksum_valid: bool
    context: str = ""


def score_identity_candidate(base_confidence: float, features: IdentityFeatures) -> float:
    """
    Confidence for a RUT candidate, clamped to 0-100.

    Args:
        base_confidence: Pattern base confidence
        features: Source context, checksum result and surrounding text
    """
    score = base_confidence + SOURCE_BONUS.get(features.source_context, 0.0)
    score += CHECKSUM_VALID_BONUS if features.checksum_valid else CHECKSUM_INVALID_PENALTY

    context = features.context.lower()
    for keywords, bonus in IDENTITY_CONTEXT_BONUSES:
        if any(k in context for k in keywords):
            score += bonus
    if any(k in context for k in UNRELATED_FIELD_KEYWORDS):
        score += UNRELATED_FIELD_PENALTY

    return max(0.0, min(100.0, score))


# ----------------------------------------------------------------------------
# Extracted results (0-1)
# ----------------------------------------------------------------------------

KNOWN_MARKER_BONUS = 0.05
UNIT_BONUS = 0.10
ABNORMAL_MARKER_BONUS = 0.15
PLAUSIBLE_VALUE_BONUS = 0.10
REFERENCE_RANGE_BONUS = 0.05
MAX_EXTRACTION_CONFIDENCE = 0.99


@dataclass(frozen=True)
class ExtractionFeatures:
    known_marker: bool = False
    has_unit: bool = False
    has_abnormal_marker: bool = False
    plausible_for_marker: bool = False
    has_reference_range: bool = False


def score_extraction(base_confidence: float, features: ExtractionFeatures) -> float:
    """
    Confidence for one extraction candidate.

    Stricter patterns carry a higher base; each independent piece of
    corroborating context adds a fixed bonus. Capped below 1.0.
    """
    score = base_confidence
    if features.known_marker:
        score += KNOWN_MARKER_BONUS
    if features.has_unit:
        score += UNIT_BONUS
    if features.has_abnormal_marker:
        score += ABNORMAL_MARKER_BONUS
    if features.plausible_for_marker:
        score += PLAUSIBLE_VALUE_BONUS
    if features.has_reference_range:
        score += REFERENCE_RANGE_BONUS
    return round(max(0.0, min(MAX_EXTRACTION_CONFIDENCE, score)), 4)


# ----------------------------------------------------------------------------
# Aggregation and document level
# ----------------------------------------------------------------------------

@dataclass
class ConfidenceThresholds:
    """Review thresholds on the 0-100 document scale"""
    auto_approve: float = 85.0
    manual_review: float = 70.0
    low_warning: float = 50.0

    def get_recommendation(self, score: float) -> ReviewRecommendation:
        if score >= self.auto_approve:
            return ReviewRecommendation.AUTO_APPROVE
        elif score >= self.manual_review:
            return ReviewRecommendation.MANUAL_REVIEW
        else:
            return ReviewRecommendation.REJECT


DOCUMENT_COMPONENT_WEIGHTS = {
    "identity": 0.20,
    "markers": 0.30,
    "ranges": 0.25,
    "abnormal": 0.25,
}


class ConfidenceCalculator:
    """
    Utility class for aggregating confidence scores and rating whole documents.
    """

    def __init__(self, thresholds: Optional[ConfidenceThresholds] = None):
        if thresholds is None:
            from ..config import threshold_settings
            thresholds = ConfidenceThresholds(
                auto_approve=threshold_settings.AUTO_APPROVE_THRESHOLD,
                manual_review=threshold_settings.MANUAL_REVIEW_THRESHOLD,
                low_warning=threshold_settings.LOW_CONFIDENCE_WARNING,
            )
        self.thresholds = thresholds

    def aggregate(
        self,
        scores: List[float],
        method: AggregationMethod = AggregationMethod.MINIMUM,
        weights: Optional[List[float]] = None,
    ) -> float:
        """
        Aggregate multiple confidence scores into a single value.

        Args:
            scores: Confidence scores (any consistent scale)
            method: Aggregation method
            weights: Optional weights for weighted average

        Returns:
            Aggregated confidence score
        """
        if not scores:
            return 0.0

        if method == AggregationMethod.MINIMUM:
            return min(scores)

        elif method == AggregationMethod.AVERAGE:
            return statistics.mean(scores)

        elif method == AggregationMethod.WEIGHTED_AVERAGE:
            if weights and len(weights) == len(scores):
                total_weight = sum(weights)
                if total_weight > 0:
                    return sum(s * w for s, w in zip(scores, weights)) / total_weight
            return statistics.mean(scores)

        return 0.0

    def document_components(
        self,
        identity_confidence: Optional[float],
        identity_valid: bool,
        result_confidences: List[float],
        numeric_count: int,
        ranged_count: int,
        flag_agreement: List[bool],
    ) -> Dict[str, float]:
        """
        Component scores (0-100) for a processed document.

        Args:
            identity_confidence: Best RUT candidate confidence, None when absent
            identity_valid: Whether the best candidate passed the checksum
            result_confidences: Confidence (0-1) of each accepted result
            numeric_count: Accepted numeric results
            ranged_count: Numeric results with a parsed reference range
            flag_agreement: Per ranged result, whether the lab's own abnormal
                marker agrees with the computed abnormality
        """
        if identity_confidence is None:
            identity = 0.0
        elif identity_valid:
            identity = identity_confidence
        else:
            identity = identity_confidence * 0.5

        markers = self.aggregate(result_confidences, AggregationMethod.AVERAGE) * 100 if result_confidences else 0.0
        ranges = (ranged_count / numeric_count * 100) if numeric_count else 0.0

        if flag_agreement:
            abnormal = sum(1 for agreed in flag_agreement if agreed) / len(flag_agreement) * 100
        else:
            abnormal = 100.0 if result_confidences else 0.0

        return {
            "identity": round(identity, 1),
            "markers": round(markers, 1),
            "ranges": round(ranges, 1),
            "abnormal": round(abnormal, 1),
        }

    def document_score(self, components: Dict[str, float]) -> float:
        """Weighted 0-100 score over the document components."""
        names = list(DOCUMENT_COMPONENT_WEIGHTS)
        score = self.aggregate(
            [components.get(name, 0.0) for name in names],
            AggregationMethod.WEIGHTED_AVERAGE,
            [DOCUMENT_COMPONENT_WEIGHTS[name] for name in names],
        )
        return round(score, 1)


def is_reviewable(confidence: float, kind: ResultKind, review_threshold: float) -> bool:
    """True when a single accepted result should be routed to manual review."""
    if kind == ResultKind.QUALITATIVE:
        return confidence < review_threshold * 0.9
    return confidence < review_threshold


class DocumentConfidenceScorer:
    """
    Rates how far a processed document can be trusted without review.

    Usage:
        scorer = DocumentConfidenceScorer()
        confidence = scorer.score(identity, results)
    """

    def __init__(self, calculator: Optional[ConfidenceCalculator] = None):
        self.calculator = calculator or ConfidenceCalculator()

    def score(self, identity, results) -> DocumentConfidence:
        """
        Args:
            identity: Best IdentityCandidate, or None
            results: Accepted ExtractedResults (classified, ranges attached)
        """
        numeric = [r for r in results if r.numeric_value is not None]
        ranged = [r for r in numeric if r.reference_range is not None]
        agreement = [
            r.has_abnormal_marker == r.classification.is_abnormal
            for r in ranged
            if r.classification is not None
        ]

        components = self.calculator.document_components(
            identity_confidence=identity.confidence if identity else None,
            identity_valid=bool(identity and identity.is_valid),
            result_confidences=[r.confidence for r in results],
            numeric_count=len(numeric),
            ranged_count=len(ranged),
            flag_agreement=agreement,
        )
        overall = self.calculator.document_score(components)
        thresholds = self.calculator.thresholds

        reasons = []
        if identity is None:
            reasons.append("RUT del paciente no encontrado")
        elif not identity.is_valid:
            reasons.append("RUT con dígito verificador inválido")
        if not results:
            reasons.append("Sin resultados de laboratorio extraídos")
        elif numeric and len(ranged) < len(numeric):
            reasons.append(f"{len(numeric) - len(ranged)} resultado(s) sin rango de referencia")
        if agreement and not all(agreement):
            reasons.append("Discrepancia entre marcador [*] y clasificación calculada")
        if overall < thresholds.low_warning:
            reasons.append(f"Confianza global baja ({overall:.1f})")

        return DocumentConfidence(
            overall_score=overall,
            components=components,
            recommendation=thresholds.get_recommendation(overall),
            reasons=reasons,
        )
