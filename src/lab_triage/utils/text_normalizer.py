# ============================================================================
# src/lab_triage/utils/text_normalizer.py
# ============================================================================
"""
Text Normalization Utilities

Cleans up decoded lab report text before any extraction runs:
- Collapses whitespace while keeping line breaks and column gaps
- Repairs UTF-8 mojibake on accented Spanish letters
- Canonicalizes spaced RUT separators ("12 . 345" -> "12.345")
- Canonicalizes the abnormal-value marker to "[*]"
- Removes header/footer boilerplate reprinted on every page
- Splits the report into sample-type sections
"""

import re
import logging
import unicodedata
from collections import Counter
from typing import List, Optional, Sequence, Tuple

from ..constants.sample_types import SAMPLE_TYPES, DEFAULT_SAMPLE_TYPE
from ..core.context.document import NormalizedDocument, NormalizedPage, SampleSection
from .parsing import ABNORMAL_MARKER

logger = logging.getLogger(__name__)

# UTF-8 bytes decoded as Latin-1 (mojibake) -> intended character
MOJIBAKE_FIXES = {
    "Ã¡": "á",
    "Ã©": "é",
    "Ã\u00ad": "í",
    "Ã³": "ó",
    "Ãº": "ú",
    "Ã±": "ñ",
    "Ã¼": "ü",
    "Ã\u0081": "Á",
    "Ã\u0089": "É",
    "Ã\u008d": "Í",
    "Ã\u0093": "Ó",
    "Ã\u009a": "Ú",
    "Ã\u0091": "Ñ",
    "Â°": "°",
    "Âµ": "µ",
    "Â²": "²",
    "Â³": "³",
    "Â\u00a0": " ",
}

# Separator and marker canonicalization, applied in order
CANONICAL_PATTERNS = [
    (re.compile(r'(?<=\d)[ \t]*\.[ \t]*(?=\d{3}\b)'), '.'),       # 12 . 345 -> 12.345
    (re.compile(r'(?<=\d{3})[ \t]*-[ \t]*(?=[0-9Kk]\b)'), '-'),  # 345.678 - 9 -> 345.678-9
    (re.compile(r'[\[\(][ \t]*\*[ \t]*[\]\)]'), ABNORMAL_MARKER),  # [ * ], (*) -> [*]
]

# Field labels that identify reprinted header/footer lines
BOILERPLATE_LABELS = [
    r'fecha\s+de\s+recepci[oó]n',
    r'fecha\s+de\s+emisi[oó]n',
    r'fecha\s+de\s+toma',
    r'fecha\s+de\s+impresi[oó]n',
    r'p[aá]gina\s+\d+\s+de\s+\d+',
    r'procedencia',
    r'profesional',
    r'm[eé]dico\s+solicitante',
    r'nombre\s*:',
    r'rut\s*:',
    r'edad\s*:',
    r'sexo\s*:',
    r'laboratorio\s+cl[ií]nico',
]
_BOILERPLATE_RE = re.compile('|'.join(BOILERPLATE_LABELS), re.IGNORECASE)
_PAGE_NUMBER_RE = re.compile(r'p[aá]gina\s+\d+\s+de\s+\d+', re.IGNORECASE)

_SAMPLE_TYPE_RE = re.compile(
    r'tipo\s+de\s+muestra\s*:\s*(?P<sample>[^\n]+)', re.IGNORECASE
)
_SECTION_RULE_RE = re.compile(r'^_{20,}[ \t]*$', re.MULTILINE)


def _base_char(char: str) -> str:
    decomposed = unicodedata.normalize('NFD', char)
    return decomposed[0] if decomposed else char


def strip_accents(text: str) -> str:
    """Remove diacritics, keeping case (Glicémia -> Glicemia)."""
    if not text:
        return text
    return ''.join(_base_char(c) for c in text)


def _fold_char(char: str) -> str:
    base = _base_char(char)
    upper = base.upper()
    if len(upper) != 1:
        upper = base
    return upper if upper.isalnum() else ' '


def fold_for_lookup(text: str) -> str:
    """
    Character-for-character lookup form of a text.

    Uppercased, accent-stripped, every non-alphanumeric character replaced by
    a space. The output has the same length as the input so match offsets map
    straight back onto the original text.
    """
    return ''.join(_fold_char(c) for c in text)


def normalize_lookup_key(text: str) -> str:
    """
    Canonical alias key: uppercase, accent-stripped, punctuation -> space,
    whitespace collapsed.

    Examples:
        "Glicemia en ayuno (basal)" -> "GLICEMIA EN AYUNO BASAL"
        "V.C.M"                     -> "V C M"
    """
    return ' '.join(fold_for_lookup(text).split())


def strip_parentheticals(text: str) -> str:
    """'GOT (A.S.T)' -> 'GOT'"""
    return ' '.join(re.sub(r'\([^)]*\)', ' ', text).split())


def fix_mojibake(text: str) -> str:
    """Repair accented letters that were decoded with the wrong codec."""
    if not text or ('Ã' not in text and 'Â' not in text):
        return text
    for broken, fixed in MOJIBAKE_FIXES.items():
        text = text.replace(broken, fixed)
    return text


def collapse_whitespace(text: str) -> str:
    """
    Collapse whitespace line by line.

    Runs of 3+ spaces become exactly three (a column gap), shorter runs are
    kept, tabs survive as column delimiters, trailing spaces are stripped,
    and more than one consecutive blank line collapses to one.
    """
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = text.replace('\u00a0', ' ').replace('\f', '\n')

    lines = []
    for line in text.split('\n'):
        line = re.sub(r' {3,}', '   ', line)
        line = re.sub(r' *\t[ \t]*', '\t', line)
        lines.append(line.rstrip())

    collapsed = '\n'.join(lines)
    return re.sub(r'\n{3,}', '\n\n', collapsed).strip('\n')


def canonicalize_separators(text: str) -> str:
    """Join spaced RUT separators and unify the abnormal marker."""
    for pattern, replacement in CANONICAL_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def detect_sample_type(text: str) -> str:
    """Sample type announced in a section heading; SUERO when absent."""
    match = _SAMPLE_TYPE_RE.search(text)
    if not match:
        return DEFAULT_SAMPLE_TYPE
    announced = match.group('sample').strip().upper()
    for sample_type in SAMPLE_TYPES:
        if announced.startswith(sample_type):
            return sample_type
    return DEFAULT_SAMPLE_TYPE


class TextNormalizer:
    """
    Pure, deterministic text cleanup for decoded lab reports.

    Usage:
        normalizer = TextNormalizer()
        document = normalizer.normalize(full_text, pages)
    """

    def __init__(self, min_repeat_pages: int = 2):
        self.min_repeat_pages = min_repeat_pages

    def clean(self, text: str) -> str:
        """First pass: encoding, whitespace, separators, abnormal marker."""
        if not text:
            return ""
        text = unicodedata.normalize('NFC', text)
        text = fix_mojibake(text)
        text = collapse_whitespace(text)
        return canonicalize_separators(text)

    def normalize(self, full_text: str, pages: Optional[Sequence[str]] = None) -> NormalizedDocument:
        """
        Normalize decoded text into pages, full text and sample sections.

        Args:
            full_text: Concatenated document text
            pages: Per-page text when the decoder segmented pages

        Returns:
            NormalizedDocument
        """
        page_texts = [p for p in (pages or []) if p is not None]
        if not page_texts:
            page_texts = [full_text or ""]

        cleaned = [self.clean(p) for p in page_texts]
        cleaned = self.remove_repeated_boilerplate(cleaned)

        normalized_pages = tuple(
            NormalizedPage(
                page_number=i + 1,
                text=text,
                blocks=tuple(b for b in re.split(r'\n\s*\n', text) if b.strip()),
            )
            for i, text in enumerate(cleaned)
        )
        joined = '\n\n'.join(p.text for p in normalized_pages if p.text)
        sections = self.split_sections(joined)

        logger.debug(
            f"Normalized {len(normalized_pages)} page(s), {len(joined)} chars, "
            f"{len(sections)} section(s)"
        )
        return NormalizedDocument(pages=normalized_pages, full_text=joined, sections=sections)

    def remove_repeated_boilerplate(self, pages: List[str]) -> List[str]:
        """
        Drop header/footer lines reprinted on later pages.

        A line is boilerplate when it carries a known field label and appears
        (ignoring page numbers and spacing) on at least min_repeat_pages pages.
        The first occurrence is kept so identity fields stay available.
        """
        if len(pages) < self.min_repeat_pages:
            return pages

        def signature(line: str) -> str:
            line = _PAGE_NUMBER_RE.sub('PAGINA', line)
            return ' '.join(line.lower().split())

        page_counts: Counter = Counter()
        for page in pages:
            seen = {signature(l) for l in page.split('\n') if _BOILERPLATE_RE.search(l)}
            page_counts.update(seen)

        repeated = {sig for sig, count in page_counts.items() if count >= self.min_repeat_pages}
        if not repeated:
            return pages

        kept_once = set()
        result = []
        removed = 0
        for page in pages:
            lines = []
            for line in page.split('\n'):
                sig = signature(line)
                if sig in repeated and _BOILERPLATE_RE.search(line):
                    if sig in kept_once:
                        removed += 1
                        continue
                    kept_once.add(sig)
                lines.append(line)
            result.append('\n'.join(lines).strip('\n'))

        logger.debug(f"Removed {removed} repeated boilerplate line(s)")
        return result

    def split_sections(self, text: str) -> Tuple[SampleSection, ...]:
        """
        Split normalized text into sample-type sections.

        Blocks are delimited by long underscore rules. A block holding several
        "Tipo de Muestra :" headings is split again at each heading; text above
        the first heading of a block takes that heading's sample type. Blocks
        without a heading keep the previous block's type (SUERO at the start).
        """
        if not text:
            return (SampleSection(sample_type=DEFAULT_SAMPLE_TYPE, text="", start=0),)

        block_starts = [0] + [m.start() for m in _SECTION_RULE_RE.finditer(text) if m.start() > 0]
        block_bounds = list(zip(block_starts, block_starts[1:] + [len(text)]))

        sections = []
        current_type = DEFAULT_SAMPLE_TYPE
        for block_start, block_end in block_bounds:
            block = text[block_start:block_end]
            headings = list(_SAMPLE_TYPE_RE.finditer(block))
            if not headings:
                if block.strip():
                    sections.append(SampleSection(sample_type=current_type, text=block, start=block_start))
                continue

            cut_points = [0] + [block.rfind('\n', 0, h.start()) + 1 for h in headings[1:]]
            cut_points.append(len(block))
            for i, heading in enumerate(headings):
                current_type = detect_sample_type(heading.group(0))
                chunk = block[cut_points[i]:cut_points[i + 1]]
                if chunk.strip():
                    sections.append(
                        SampleSection(sample_type=current_type, text=chunk, start=block_start + cut_points[i])
                    )

        if not sections:
            sections.append(SampleSection(sample_type=DEFAULT_SAMPLE_TYPE, text=text, start=0))
        return tuple(sections)


def normalize_text(full_text: str, pages: Optional[Sequence[str]] = None) -> NormalizedDocument:
    """Convenience function for one-off normalization."""
    return TextNormalizer().normalize(full_text, pages)
