# ============================================================================
# src/lab_triage/extractors/strategies/base.py
# ============================================================================
"""
Base class for value extraction strategies.

Every strategy walks the same marker matches of a section; for each match
it sees the "tail" of the line (text after the marker name up to the next
marker on the same line) and decides whether the tail holds a value in the
layout it understands. Building the ExtractedResult, plausibility limits
and confidence scoring are shared here so strategies only parse.
"""

import re
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from ...config import extraction_settings
from ...core.confidence import ExtractionFeatures, score_extraction
from ...core.context.document import SampleSection
from ...core.context.enums import ResultKind
from ...core.context.extracted_result import ExtractedResult
from ...core.context.reference import MarkerMatch
from ...utils.parsing import NUMBER_PATTERN, clean_unit, parse_numeric_value, split_abnormal_marker
from ..marker_matcher import MarkerMatcher
from ..reference_range_parser import ReferenceRangeParser

logger = logging.getLogger(__name__)

# Building blocks shared by the numeric strategies
VALUE_RE = rf'(?P<value>[<>]?[ \t]*(?:{NUMBER_PATTERN}))(?![\d.,]*\d)(?![ \t]*-[ \t]*\d)'
UNIT_RE = (
    r'(?:[ \t]*\((?P<punit>[^()\n]{1,20})\)'
    r'|[ \t]*(?P<unit>%|x?10\^?\d+/[A-Za-zµμ]+|[A-Za-zµμ]{1,6}/[A-Za-zµμ0-9³]{1,6}|fL|pg|seg)(?=[\s\[]|$))?'
)
FLAG_RE = r'(?:[ \t]*(?P<flag>\[\*\]))?'
REST_RE = r'(?P<rest>.*)$'

_COLUMN_SPLIT = re.compile(r'\s{2,}|\t')


@dataclass(frozen=True)
class MatchContext:
    """One marker occurrence with the text a strategy may read."""
    section: SampleSection
    match: MarkerMatch
    line: str
    line_offset: int  # absolute offset of the line
    tail: str
    following_lines: Tuple[Tuple[str, int], ...] = ()

    @property
    def exam_name(self) -> str:
        start = self.match.start - self.line_offset
        end = self.match.end - self.line_offset
        return self.line[start:end].strip().rstrip(':').strip()


@dataclass(frozen=True)
class ParsedValue:
    raw_value: Union[float, str]
    unit: Optional[str] = None
    reference_range_text: Optional[str] = None
    method: Optional[str] = None
    has_abnormal_marker: bool = False


def iter_match_contexts(section: SampleSection, matcher: MarkerMatcher) -> List[MatchContext]:
    """Marker matches of a section with their line tails."""
    lines = section.text.split('\n')
    offsets = []
    position = section.start
    for line in lines:
        offsets.append(position)
        position += len(line) + 1

    contexts = []
    for index, (line, offset) in enumerate(zip(lines, offsets)):
        matches = matcher.find_in_line(line, offset, section.sample_type)
        for i, match in enumerate(matches):
            tail_end = matches[i + 1].start - offset if i + 1 < len(matches) else len(line)
            following = tuple(
                (lines[j], offsets[j]) for j in range(index + 1, min(index + 4, len(lines)))
            )
            contexts.append(MatchContext(
                section=section,
                match=match,
                line=line,
                line_offset=offset,
                tail=line[match.end - offset:tail_end],
                following_lines=following,
            ))
    return contexts


def split_range_and_method(rest: str, word_range: bool = False) -> Tuple[Optional[str], Optional[str]]:
    """
    Split the text after a value into (reference range text, method).

    Columns are separated by wide gaps. A trailing column without digits is
    the method; everything before it is the reference range. With
    word_range (qualitative rows) the first column is always the range.
    """
    parts = [p.strip() for p in _COLUMN_SPLIT.split(rest.strip()) if p.strip()]
    if not parts:
        return None, None

    if word_range:
        return parts[0], ('  '.join(parts[1:]) or None)

    if len(parts) > 1 and not re.search(r'\d', parts[-1]):
        return '  '.join(parts[:-1]), parts[-1]
    if len(parts) == 1 and not re.search(r'\d', parts[0]):
        return None, parts[0]
    return '  '.join(parts), None


class ExtractionStrategy(ABC):
    """
    One layout-specific way of reading values next to marker names.

    Subclasses set name, base_confidence and result_kind, and implement
    parse(). accepts() narrows which markers a strategy handles.
    """

    name: str = "base"
    base_confidence: float = 0.0
    result_kind: ResultKind = ResultKind.NUMERIC

    def __init__(
        self,
        range_parser: Optional[ReferenceRangeParser] = None,
        max_value: Optional[float] = None,
        snippet_width: Optional[int] = None,
    ):
        self.range_parser = range_parser or ReferenceRangeParser()
        self.max_value = max_value if max_value is not None else extraction_settings.MAX_PLAUSIBLE_VALUE
        self.snippet_width = snippet_width or extraction_settings.CONTEXT_SNIPPET_WIDTH

    def extract(self, section: SampleSection, matcher: MarkerMatcher) -> List[ExtractedResult]:
        """Candidates this strategy recognises in one section."""
        results = []
        for context in iter_match_contexts(section, matcher):
            if not self.accepts(context):
                continue
            parsed = self.parse(context)
            if parsed is None:
                continue
            result = self._build_result(context, parsed)
            if result is not None:
                results.append(result)
        return results

    def accepts(self, context: MatchContext) -> bool:
        return True

    @abstractmethod
    def parse(self, context: MatchContext) -> Optional[ParsedValue]:
        """Read a value from the match context, or None when the layout does not fit."""

    def parse_numeric_match(self, match: Optional[re.Match], word_range: bool = False) -> Optional[ParsedValue]:
        """ParsedValue from a regex built with VALUE_RE/UNIT_RE/FLAG_RE/REST_RE."""
        if match is None:
            return None
        value = parse_numeric_value(match.group('value'))
        if value is None:
            return None

        rest, rest_flagged = split_abnormal_marker(match.group('rest') or "")
        range_text, method = split_range_and_method(rest, word_range)
        groups = match.groupdict()
        return ParsedValue(
            raw_value=value,
            unit=clean_unit(groups.get('punit') or groups.get('unit')),
            reference_range_text=range_text,
            method=method,
            has_abnormal_marker=bool(groups.get('flag')) or rest_flagged,
        )

    def _build_result(self, context: MatchContext, parsed: ParsedValue) -> Optional[ExtractedResult]:
        marker = context.match.marker
        numeric = isinstance(parsed.raw_value, float)

        if numeric and not (0 <= parsed.raw_value <= self.max_value):
            logger.debug(
                f"{self.name}: discarding implausible {marker.system_code}={parsed.raw_value}"
            )
            return None

        has_range = bool(
            parsed.reference_range_text and self.range_parser.parse(parsed.reference_range_text)
        )
        features = ExtractionFeatures(
            known_marker=True,
            has_unit=bool(parsed.unit),
            has_abnormal_marker=parsed.has_abnormal_marker,
            plausible_for_marker=numeric and marker.is_plausible(parsed.raw_value),
            has_reference_range=has_range,
        )

        snippet = ' '.join(context.line.split())
        if len(snippet) > self.snippet_width:
            snippet = snippet[:self.snippet_width].rstrip()

        return ExtractedResult(
            exam_name=context.exam_name,
            raw_value=parsed.raw_value,
            unit=parsed.unit or (marker.expected_unit if numeric else None),
            reference_range_text=parsed.reference_range_text,
            method=parsed.method,
            sample_type=context.section.sample_type,
            has_abnormal_marker=parsed.has_abnormal_marker,
            confidence=score_extraction(self.base_confidence, features),
            source_position=context.match.start,
            context_snippet=snippet,
            result_kind=self.result_kind,
            strategy=self.name,
            system_code=marker.system_code,
        )
