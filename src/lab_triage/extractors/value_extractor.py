# ============================================================================
# src/lab_triage/extractors/value_extractor.py
# ============================================================================
"""
Value & Range Extraction

Runs every extraction strategy over every sample section and concatenates
their candidates in the fixed strategy order. Strategies are pure
functions of the same read-only text, so they may run on a thread pool;
merging by strategy order keeps the output deterministic either way.

Reference ranges are attached after filtering: the range printed in the
result's own row wins, otherwise the nearest range printed after the
marker (before the next marker) is used. When only gender-specific
ranges were printed and none matches the patient, the result is left
without a range and marked range_needs_sex.
"""

import bisect
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import extraction_settings, threshold_settings
from ..core.context.document import NormalizedDocument, SampleSection
from ..core.context.extracted_result import ExtractedResult
from ..core.context.reference import ReferenceRange
from .marker_matcher import MarkerMatcher, get_marker_matcher
from .reference_range_parser import ReferenceRangeParser
from .strategies import ExtractionStrategy, build_default_strategies

logger = logging.getLogger(__name__)


class ValueExtractor:
    """
    Extract lab result candidates from a normalized document.

    Usage:
        extractor = ValueExtractor()
        candidates = extractor.extract(document)
        results = extractor.attach_reference_ranges(filtered, document, sex="F")
    """

    def __init__(
        self,
        matcher: Optional[MarkerMatcher] = None,
        strategies: Optional[Sequence[ExtractionStrategy]] = None,
        range_parser: Optional[ReferenceRangeParser] = None,
        parallel: Optional[bool] = None,
        max_workers: Optional[int] = None,
    ):
        self.matcher = matcher or get_marker_matcher()
        self.range_parser = range_parser or ReferenceRangeParser()
        self.strategies = list(strategies) if strategies is not None else build_default_strategies(
            range_parser=self.range_parser
        )
        self.parallel = extraction_settings.PARALLEL_STRATEGIES if parallel is None else parallel
        self.max_workers = max_workers or extraction_settings.MAX_WORKERS

    def extract(self, document: NormalizedDocument) -> List[ExtractedResult]:
        """
        All candidates from all strategies, unfiltered.

        Returns:
            Candidates grouped by strategy (in strategy order), each group in
            section and line order
        """
        sections = document.sections

        if self.parallel and len(self.strategies) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = [pool.submit(self._run_strategy, s, sections) for s in self.strategies]
                per_strategy = [f.result() for f in futures]
        else:
            per_strategy = [self._run_strategy(s, sections) for s in self.strategies]

        candidates = [result for group in per_strategy for result in group]

        counts = ", ".join(f"{s.name}={len(g)}" for s, g in zip(self.strategies, per_strategy))
        logger.debug(f"Extracted {len(candidates)} candidates ({counts})")
        return candidates

    def _run_strategy(self, strategy: ExtractionStrategy, sections: Sequence[SampleSection]) -> List[ExtractedResult]:
        results = []
        for section in sections:
            results.extend(strategy.extract(section, self.matcher))
        return results

    def attach_reference_ranges(
        self,
        results: Sequence[ExtractedResult],
        document: NormalizedDocument,
        sex: Optional[str] = None,
    ) -> List[ExtractedResult]:
        """
        Parse and attach a ReferenceRange to every numeric result.

        Args:
            results: Filtered, deduplicated results
            document: Document the results were extracted from
            sex: Patient sex ("M"/"F") for gender-specific ranges
        """
        section_ranges: Dict[int, List[ReferenceRange]] = {}
        section_marker_starts: Dict[int, List[int]] = {}

        attached = []
        for result in results:
            if result.numeric_value is None:
                attached.append(result)
                continue

            reference = None
            needs_sex = False
            if result.reference_range_text:
                printed = self.range_parser.parse(result.reference_range_text)
                reference = self.range_parser.select_for_gender(printed, sex)
                needs_sex = reference is None and self.range_parser.only_gender_specific(printed)

            if reference is None and not needs_sex:
                index = self._section_index(document, result.source_position)
                if index is not None:
                    if index not in section_ranges:
                        section = document.sections[index]
                        section_ranges[index] = self.range_parser.parse(section.text, base_offset=section.start)
                        section_marker_starts[index] = [
                            section.start + m.start
                            for m in self.matcher.find_all(section.text, section.sample_type)
                        ]
                    reference, needs_sex = self._nearest_range(
                        result.source_position,
                        section_ranges[index],
                        section_marker_starts[index],
                        sex,
                    )

            if needs_sex:
                logger.debug(
                    f"{result.dedup_key}: only gender-specific ranges printed and patient sex "
                    f"{'unknown' if not sex else sex}; left ungraded"
                )
            if reference is not None or needs_sex:
                result = replace(result, reference_range=reference, range_needs_sex=needs_sex)
            attached.append(result)
        return attached

    def _nearest_range(
        self,
        position: int,
        ranges: List[ReferenceRange],
        marker_starts: List[int],
        sex: Optional[str],
    ) -> Tuple[Optional[ReferenceRange], bool]:
        """
        Nearest following range that sits before the next marker name, and
        whether only gender-specific ranges not matching the patient were found.
        """
        next_marker = bisect.bisect_right(marker_starts, position)
        limit = marker_starts[next_marker] if next_marker < len(marker_starts) else None
        window = [r for r in ranges if limit is None or r.position < limit]

        nearest = self.range_parser.match_to(
            position, window, threshold_settings.REFERENCE_RANGE_MAX_DISTANCE
        )
        if nearest is None:
            return None, False

        # A gender-specific pair printed together: pick the patient's
        same_block = [r for r in window if 0 <= r.position - nearest.position <= 40]
        chosen = self.range_parser.select_for_gender(same_block, sex)
        return chosen, chosen is None and self.range_parser.only_gender_specific(same_block)

    @staticmethod
    def _section_index(document: NormalizedDocument, position: int) -> Optional[int]:
        for index, section in enumerate(document.sections):
            if section.start <= position < section.start + len(section.text):
                return index
        return None
