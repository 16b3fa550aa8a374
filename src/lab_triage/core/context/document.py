# ============================================================================
# src/lab_triage/core/context/document.py
# ============================================================================
"""
Document representations along the ingestion path
- RawDocument: uploaded bytes (decoder input)
- DecodedDocument: full text plus per-page text (decoder output)
- NormalizedPage / NormalizedDocument: cleaned text read by all extractors
- SampleSection: slice of the report belonging to one sample type
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, List


@dataclass(frozen=True)
class RawDocument:
    content: bytes
    page_boundaries: Tuple[int, ...] = ()
    filename: Optional[str] = None


@dataclass
class DecodedDocument:
    full_text: str
    pages: List[str] = field(default_factory=list)
    source: Optional[str] = None

    @property
    def page_count(self) -> int:
        return len(self.pages)


@dataclass(frozen=True)
class NormalizedPage:
    page_number: int
    text: str
    blocks: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SampleSection:
    sample_type: str
    text: str
    start: int = 0  # offset of the section in NormalizedDocument.full_text


@dataclass(frozen=True)
class NormalizedDocument:
    pages: Tuple[NormalizedPage, ...]
    full_text: str
    sections: Tuple[SampleSection, ...] = ()

    @property
    def page_count(self) -> int:
        return len(self.pages)
