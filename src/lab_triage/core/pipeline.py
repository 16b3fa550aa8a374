# ============================================================================
# src/lab_triage/core/pipeline.py
# ============================================================================
"""
Lab Report Triage Pipeline

Pipeline Flow:
    Decoded text → Normalize → Identity → Values (strategies)
                 → Noise filter → Deduplicate → Reference ranges
                 → Severity → Critical values → Priority score → Summary

Every stage is synchronous and deterministic; identical input produces
byte-identical JSON output. Only decoding failures and configuration
errors raise. Missing identity or markers, low confidence and ranges that
depend on an unknown patient sex are recorded as warnings on the result.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..config import extraction_settings, threshold_settings
from ..clinical.critical_thresholds import CriticalThresholdChecker
from ..clinical.priority_scorer import PriorityScorer
from ..clinical.severity_classifier import SeverityClassifier
from ..clinical.summary import build_summary
from ..extractors.identity_extractor import IdentityExtractor
from ..extractors.pdf_text_extractor import PDFTextExtractor, PdfSource
from ..extractors.value_extractor import ValueExtractor
from ..utils.exceptions import (
    GenderRangeUnresolved,
    LowConfidenceExtraction,
    NoIdentityFound,
    NoMarkersFound,
    PipelineWarning,
)
from ..utils.logging import log_performance
from ..utils.text_normalizer import TextNormalizer
from ..validators.deduplicator import Deduplicator
from ..validators.noise_filter import NoiseFilter
from .confidence import DocumentConfidenceScorer, is_reviewable
from .context.document import DecodedDocument, NormalizedDocument
from .context.extracted_result import ExtractedResult
from .context.identity import IdentityExtractionResult
from .context.metadata import PatientContext
from .context.pipeline_result import PipelineResult

logger = logging.getLogger(__name__)

BatchItem = Union[str, DecodedDocument]


class LabReportPipeline:
    """
    End-to-end processing of one lab report.

    Usage:
        pipeline = LabReportPipeline()
        result = pipeline.process_text(text, patient=PatientContext(age=67, sex="F"))
        print(result.to_json(indent=2))
    """

    def __init__(
        self,
        normalizer: Optional[TextNormalizer] = None,
        identity_extractor: Optional[IdentityExtractor] = None,
        value_extractor: Optional[ValueExtractor] = None,
        noise_filter: Optional[NoiseFilter] = None,
        deduplicator: Optional[Deduplicator] = None,
        classifier: Optional[SeverityClassifier] = None,
        critical_checker: Optional[CriticalThresholdChecker] = None,
        scorer: Optional[PriorityScorer] = None,
        confidence_scorer: Optional[DocumentConfidenceScorer] = None,
        decoder: Optional[PDFTextExtractor] = None,
    ):
        self.normalizer = normalizer or TextNormalizer()
        self.identity_extractor = identity_extractor or IdentityExtractor()
        self.value_extractor = value_extractor or ValueExtractor()
        self.noise_filter = noise_filter or NoiseFilter()
        self.deduplicator = deduplicator or Deduplicator()
        self.critical_checker = critical_checker or CriticalThresholdChecker()
        self.classifier = classifier or SeverityClassifier(critical_checker=self.critical_checker)
        self.scorer = scorer or PriorityScorer()
        self.confidence_scorer = confidence_scorer or DocumentConfidenceScorer()
        self.decoder = decoder or PDFTextExtractor()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def process_text(
        self,
        full_text: str,
        pages: Optional[Sequence[str]] = None,
        patient: Optional[PatientContext] = None,
    ) -> PipelineResult:
        """
        Process decoded report text.

        Args:
            full_text: Concatenated document text
            pages: Per-page text, when available (enables boilerplate removal)
            patient: Optional age/sex context

        Returns:
            PipelineResult
        """
        document = self._normalize(full_text, pages)
        identity = self._extract_identity(document)
        results = self._extract_results(document, patient)
        results = self._classify(results)

        alerts = self.critical_checker.scan(results)
        score = self.scorer.score_results(results, patient)
        summary = build_summary(results, alerts, score)
        confidence = self.confidence_scorer.score(identity.best_match, results)

        warnings = self._collect_warnings(identity, results, confidence.overall_score)

        logger.info(
            f"Processed report: {summary.total_markers} marker(s), {summary.abnormal_count} abnormal, "
            f"{summary.critical_count} critical, priority {score.priority_level.value} "
            f"({score.total_score}), confidence {confidence.overall_score} "
            f"({confidence.recommendation.value})"
        )

        return PipelineResult(
            identity=identity.best_match,
            results=results,
            critical_values=alerts,
            priority_score=score,
            summary=summary,
            confidence=confidence,
            warnings=[w.to_dict() for w in warnings],
        )

    def process_decoded(self, decoded: DecodedDocument, patient: Optional[PatientContext] = None) -> PipelineResult:
        """Process the decoding collaborator's (full_text, pages) output."""
        return self.process_text(decoded.full_text, decoded.pages or None, patient)

    def process_document(
        self,
        source: PdfSource,
        patient: Optional[PatientContext] = None,
        password: Optional[str] = None,
    ) -> PipelineResult:
        """
        Decode a PDF and process it.

        Raises:
            DecodingFailure: the document could not be decoded; nothing else ran
        """
        decoded = self.decoder.extract(source, password=password)
        return self.process_decoded(decoded, patient)

    def process_batch(
        self,
        items: Sequence[BatchItem],
        patients: Optional[Sequence[Optional[PatientContext]]] = None,
        max_workers: Optional[int] = None,
    ) -> List[PipelineResult]:
        """
        Process many reports on a thread pool.

        Args:
            items: Report texts or DecodedDocuments
            patients: Patient context per item (same length), optional
            max_workers: Pool size (defaults to LAB_TRIAGE_EXTRACTION_MAX_WORKERS)

        Returns:
            Results in input order
        """
        if patients is not None and len(patients) != len(items):
            raise ValueError("patients must have one entry per item")
        patients = list(patients) if patients is not None else [None] * len(items)

        def run(pair):
            item, patient = pair
            if isinstance(item, DecodedDocument):
                return self.process_decoded(item, patient)
            return self.process_text(item, patient=patient)

        workers = max_workers or extraction_settings.MAX_WORKERS
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(run, zip(items, patients)))

        logger.info(f"Processed batch of {len(results)} report(s)")
        return results

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    @log_performance(logger, "normalize")
    def _normalize(self, full_text: str, pages: Optional[Sequence[str]]) -> NormalizedDocument:
        return self.normalizer.normalize(full_text or "", pages)

    @log_performance(logger, "identity extraction")
    def _extract_identity(self, document: NormalizedDocument) -> IdentityExtractionResult:
        return self.identity_extractor.extract(document.full_text)

    @log_performance(logger, "value extraction")
    def _extract_results(self, document: NormalizedDocument, patient: Optional[PatientContext]) -> List[ExtractedResult]:
        candidates = self.value_extractor.extract(document)
        filtered = self.noise_filter.filter(candidates)
        results = self.deduplicator.deduplicate(filtered)
        sex = patient.sex if patient else None
        results = self.value_extractor.attach_reference_ranges(results, document, sex)
        logger.debug(f"{len(candidates)} candidates -> {len(filtered)} filtered -> {len(results)} results")
        return results

    @log_performance(logger, "classification")
    def _classify(self, results: List[ExtractedResult]) -> List[ExtractedResult]:
        return [replace(r, classification=self.classifier.classify(r)) for r in results]

    def _collect_warnings(
        self,
        identity: IdentityExtractionResult,
        results: List[ExtractedResult],
        overall_confidence: float,
    ) -> List[PipelineWarning]:
        warnings: List[PipelineWarning] = []

        if not identity.found:
            warnings.append(NoIdentityFound("No se encontró RUT del paciente"))
        elif not identity.best_match.is_valid:
            warnings.append(NoIdentityFound(
                "RUT encontrado con dígito verificador inválido",
                {"candidate": identity.best_match.anonymized},
            ))

        if not results:
            warnings.append(NoMarkersFound("No se extrajeron marcadores de laboratorio"))

        review_threshold = threshold_settings.RESULT_REVIEW_CONFIDENCE
        low = [r for r in results if is_reviewable(r.confidence, r.result_kind, review_threshold)]
        if low:
            warnings.append(LowConfidenceExtraction(
                f"{len(low)} resultado(s) con confianza bajo {review_threshold:.2f}",
                {"markers": [r.dedup_key for r in low]},
            ))
        ungraded = [r.dedup_key for r in results if r.range_needs_sex]
        if ungraded:
            warnings.append(GenderRangeUnresolved(
                f"{len(ungraded)} resultado(s) con rangos solo por sexo; requiere sexo del paciente",
                {"markers": ungraded},
            ))
        if results and overall_confidence < threshold_settings.LOW_CONFIDENCE_WARNING:
            warnings.append(LowConfidenceExtraction(
                f"Confianza del documento {overall_confidence:.1f} bajo "
                f"{threshold_settings.LOW_CONFIDENCE_WARNING:.0f}",
                {"overallScore": overall_confidence},
            ))

        for warning in warnings:
            logger.warning(f"{warning.code}: {warning.message}")
        return warnings


def process_lab_report(
    text: str,
    age: Optional[int] = None,
    sex: Optional[str] = None,
) -> PipelineResult:
    """Convenience function: process one report text with optional patient context."""
    patient = PatientContext(age=age, sex=sex) if (age is not None or sex is not None) else None
    return LabReportPipeline().process_text(text, patient=patient)


def process_pdf(path: Union[str, Path], age: Optional[int] = None, sex: Optional[str] = None) -> PipelineResult:
    """Convenience function: decode and process one PDF."""
    patient = PatientContext(age=age, sex=sex) if (age is not None or sex is not None) else None
    return LabReportPipeline().process_document(Path(path), patient=patient)
