# ============================================================================
# src/lab_triage/validators/deduplicator.py
# ============================================================================
"""
Deduplicator

Several strategies (and repeated rows) can produce candidates for the same
marker. Exactly one survives per canonical key:
1. Highest confidence
2. Then the candidate from the sample type the parameter belongs to
   (CBC/differential from whole blood, urinalysis from urine)
3. Then the earliest position in the document
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Sequence

from ..constants.sample_types import preferred_sample_type, sample_type_matches
from ..core.context.extracted_result import ExtractedResult

logger = logging.getLogger(__name__)


def _preference_rank(candidate: ExtractedResult) -> int:
    """0 when the candidate comes from the parameter's own sample type."""
    preferred = None
    if candidate.system_code:
        preferred = preferred_sample_type(candidate.system_code)
    if preferred is None:
        preferred = preferred_sample_type(' '.join(candidate.exam_name.upper().split()))
    if preferred is None:
        return 0
    return 0 if sample_type_matches(candidate.sample_type, preferred) else 1


def selection_key(candidate: ExtractedResult):
    return (-candidate.confidence, _preference_rank(candidate), candidate.source_position)


class Deduplicator:
    """
    Reduce candidates to one result per canonical marker.

    Usage:
        results = Deduplicator().deduplicate(candidates)
    """

    def deduplicate(self, candidates: Sequence[ExtractedResult]) -> List[ExtractedResult]:
        """
        Returns:
            One result per dedup key, ordered by source position
        """
        groups: Dict[str, List[ExtractedResult]] = OrderedDict()
        for candidate in candidates:
            groups.setdefault(candidate.dedup_key, []).append(candidate)

        survivors = []
        for key, group in groups.items():
            winner = min(group, key=selection_key)
            if len(group) > 1:
                logger.debug(
                    f"{key}: kept {winner.strategy} ({winner.confidence:.2f}) over "
                    f"{len(group) - 1} duplicate(s)"
                )
            survivors.append(winner)

        survivors.sort(key=lambda r: (r.source_position, r.dedup_key))
        return survivors
