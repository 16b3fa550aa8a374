# ============================================================================
# src/lab_triage/extractors/marker_matcher.py
# ============================================================================
"""
Marker Matcher

Locates canonical marker names in report text.

The lookup is built once from the canonical marker table: every alias
registers its normalized key and its parenthetical-stripped key. All keys
are compiled into one alternation, longest first, and run against the
folded form of each line (same length as the line, so offsets map straight
back). Some surface names are shared between sample types (GLUCOSA in
serum and urine); the section's sample type picks between them.
"""

import re
import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..constants.canonical_markers import load_canonical_markers
from ..constants.sample_types import sample_type_matches
from ..core.context.reference import CanonicalMarker, MarkerMatch
from ..utils.text_normalizer import fold_for_lookup, normalize_lookup_key, strip_parentheticals

logger = logging.getLogger(__name__)

# Characters that close an alias in print but fold to spaces ("V.C.M.", "GOT (A.S.T)")
_ALIAS_CLOSERS = ".)]:"

# A marker name starts a line or a new column
_COLUMN_START = re.compile(r'(?:\s{2,}|\t|\|)$')


def _alias_regex(key: str) -> str:
    return r'\s+'.join(re.escape(token) for token in key.split())


class MarkerMatcher:
    """
    Find canonical markers in normalized text.

    Usage:
        matcher = MarkerMatcher()
        for match in matcher.find_all(section.text, section.sample_type):
            print(match.marker.system_code, match.start)
    """

    def __init__(self, markers: Optional[Iterable[CanonicalMarker]] = None):
        self.markers: Tuple[CanonicalMarker, ...] = tuple(
            markers if markers is not None else load_canonical_markers()
        )
        self.lookup_table: Mapping[str, Tuple[CanonicalMarker, ...]] = self._build_lookup(self.markers)

        keys = sorted(self.lookup_table, key=lambda k: (-len(k), k))
        self._pattern = re.compile(
            r'(?<![A-Z0-9])(?P<alias>' + '|'.join(_alias_regex(k) for k in keys) + r')(?![A-Z])'
        ) if keys else None

        logger.debug(f"MarkerMatcher ready: {len(self.markers)} markers, {len(keys)} alias keys")

    @staticmethod
    def _build_lookup(markers: Tuple[CanonicalMarker, ...]) -> Mapping[str, Tuple[CanonicalMarker, ...]]:
        table: Dict[str, List[CanonicalMarker]] = {}

        def register(text: str, marker: CanonicalMarker) -> None:
            key = normalize_lookup_key(text)
            if len(key) < 2:
                return
            bucket = table.setdefault(key, [])
            if marker not in bucket:
                bucket.append(marker)

        for marker in markers:
            for alias in marker.aliases:
                register(alias, marker)
                register(strip_parentheticals(alias), marker)

        return MappingProxyType({key: tuple(found) for key, found in table.items()})

    def _pick(self, candidates: Tuple[CanonicalMarker, ...], sample_type: Optional[str]) -> CanonicalMarker:
        if sample_type and len(candidates) > 1:
            for marker in candidates:
                if any(sample_type_matches(sample_type, st) for st in marker.sample_types):
                    return marker
        return candidates[0]

    def lookup(self, name: str, sample_type: Optional[str] = None) -> Optional[CanonicalMarker]:
        """
        Resolve a surface exam name to its canonical marker.

        Args:
            name: Exam name as printed ("GOT (A.S.T)", "Glicemia")
            sample_type: Section sample type, used when a name is shared

        Returns:
            CanonicalMarker or None
        """
        if not name:
            return None
        for key in (normalize_lookup_key(name), normalize_lookup_key(strip_parentheticals(name))):
            candidates = self.lookup_table.get(key)
            if candidates:
                return self._pick(candidates, sample_type)
        return None

    def find_in_line(self, line: str, offset: int = 0, sample_type: Optional[str] = None) -> List[MarkerMatch]:
        """
        Marker occurrences in one line.

        A name must start the line or a new column (after a wide gap, a tab
        or a pipe); words inside free text or a method column are not names.

        Args:
            line: Single line of normalized text
            offset: Position of the line in the enclosing text
            sample_type: Section sample type
        """
        if self._pattern is None or not line.strip():
            return []

        folded = fold_for_lookup(line)
        matches = []
        for m in self._pattern.finditer(folded):
            start = m.start()
            prefix = line[:start]
            if prefix.strip() and not _COLUMN_START.search(prefix):
                continue

            key = ' '.join(m.group('alias').split())
            candidates = self.lookup_table.get(key)
            if not candidates:
                continue

            end = m.end()
            while end < len(line) and line[end] in _ALIAS_CLOSERS:
                end += 1

            matches.append(MarkerMatch(
                marker=self._pick(candidates, sample_type),
                alias=key,
                start=offset + start,
                end=offset + end,
            ))
        return matches

    def find_all(self, text: str, sample_type: Optional[str] = None) -> List[MarkerMatch]:
        """
        Marker occurrences in a text, line by line.

        Returns:
            MarkerMatch list ordered by position (offsets into text)
        """
        matches = []
        offset = 0
        for line in text.split('\n'):
            matches.extend(self.find_in_line(line, offset, sample_type))
            offset += len(line) + 1
        return matches


_default_matcher: Optional[MarkerMatcher] = None


def get_marker_matcher() -> MarkerMatcher:
    """Shared matcher over the loaded canonical markers."""
    global _default_matcher
    if _default_matcher is None:
        _default_matcher = MarkerMatcher()
    return _default_matcher


def reset_marker_matcher() -> None:
    """Rebuild the shared matcher on next access (after reference reload)."""
    global _default_matcher
    _default_matcher = None
