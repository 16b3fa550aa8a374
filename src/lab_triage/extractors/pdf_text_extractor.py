# ============================================================================
# src/lab_triage/extractors/pdf_text_extractor.py
# ============================================================================
"""
Text extraction from lab report PDFs.

Uses pdfplumber with layout preservation so column gaps between exam name,
value, unit and reference range survive as runs of spaces.

Handles:
- File paths, raw bytes, or a RawDocument
- Encrypted PDFs (with password)
- Pages that fail individually (kept as empty text)

Any document-level failure is raised as DecodingFailure before the
pipeline is entered.
"""

import io
import logging
from pathlib import Path
from typing import List, Optional, Union

import pdfplumber

from ..core.context.document import RawDocument, DecodedDocument
from ..utils.exceptions import DecodingFailure

PdfSource = Union[str, Path, bytes, RawDocument]

_PASSWORD_HINTS = ("password", "encrypt", "decrypt")


def _failure_reason(error: Exception) -> str:
    """'encrypted' for password errors, 'corrupt' for everything else."""
    text = f"{type(error).__name__} {error}".lower()
    if any(hint in text for hint in _PASSWORD_HINTS):
        return "encrypted"
    return "corrupt"


class PDFTextExtractor:
    """
    Decode a PDF into (full_text, pages).

    Usage:
        extractor = PDFTextExtractor()
        decoded = extractor.extract(Path("informe.pdf"))
    """

    def __init__(self, layout: bool = True):
        self.layout = layout
        self.logger = logging.getLogger(__name__)

    def extract(self, source: PdfSource, password: Optional[str] = None) -> DecodedDocument:
        """
        Extract text from every page.

        Args:
            source: PDF path, bytes, or RawDocument
            password: Password for encrypted PDFs

        Returns:
            DecodedDocument with pages joined by blank lines

        Raises:
            DecodingFailure: file missing, corrupt, or password protected
        """
        label = self._describe(source)
        opened = self._open_target(source, label)

        try:
            with pdfplumber.open(opened, password=password or "") as pdf:
                pages = self._extract_pages(pdf)
        except DecodingFailure:
            raise
        except Exception as e:
            reason = _failure_reason(e)
            self.logger.error(f"PDF decoding failed for {label} ({reason}): {e}")
            raise DecodingFailure(f"Could not decode {label}: {e}", source=label, reason=reason) from e

        full_text = "\n\n".join(pages)
        if not full_text.strip():
            self.logger.warning(f"No extractable text in {label} (scanned document?)")

        self.logger.info(f"Decoded {label}: {len(pages)} page(s), {len(full_text)} chars")
        return DecodedDocument(full_text=full_text, pages=pages, source=label)

    def _extract_pages(self, pdf) -> List[str]:
        pages = []
        for page_num, page in enumerate(pdf.pages):
            try:
                text = page.extract_text(layout=self.layout) or ""
            except Exception as e:
                self.logger.warning(f"Page {page_num + 1} text extraction failed: {e}")
                text = ""
            pages.append(text)
        return pages

    def _open_target(self, source: PdfSource, label: str):
        if isinstance(source, RawDocument):
            return io.BytesIO(source.content)
        if isinstance(source, (bytes, bytearray)):
            return io.BytesIO(bytes(source))

        path = Path(source)
        if not path.exists():
            raise DecodingFailure(f"File not found: {path}", source=label, reason="unreadable")
        return path

    @staticmethod
    def _describe(source: PdfSource) -> str:
        if isinstance(source, RawDocument):
            return source.filename or "<bytes>"
        if isinstance(source, (bytes, bytearray)):
            return "<bytes>"
        return str(source)


def extract_pdf_text(source: PdfSource, password: Optional[str] = None) -> DecodedDocument:
    """Convenience function for one-off decoding."""
    return PDFTextExtractor().extract(source, password=password)
