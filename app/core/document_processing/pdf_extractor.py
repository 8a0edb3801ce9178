"""PDF text extractor.

Uses PyMuPDF (fitz) for native text extraction. Scanned or image-only PDFs
yield no text; the caller then falls back to sending the raw file to the provider.
"""

import asyncio
import io
from typing import Optional

from app.core.logging import get_logger

logger = get_logger(__name__)

MAX_PDF_PAGES = 100
MAX_PDF_BYTES = 10 * 1024 * 1024

# Lazy import to avoid loading heavy libraries at module load
fitz = None


def _get_fitz():
    """Lazy load PyMuPDF."""
    global fitz
    if fitz is None:
        try:
            import fitz as _fitz
            fitz = _fitz
        except ImportError:
            raise ImportError(
                "PyMuPDF (fitz) is required for PDF extraction. "
                "Install with: pip install pymupdf"
            )
    return fitz


class PDFTextExtractor:
    """Extracts plain text from PDF bytes.

    Returns None instead of raising: an unreadable document is not a turn failure.
    """

    def __init__(self, max_pages: int = MAX_PDF_PAGES, max_bytes: int = MAX_PDF_BYTES):
        self.max_pages = max_pages
        self.max_bytes = max_bytes

    def extract_text(self, file_bytes: bytes, filename: str = "documento.pdf") -> Optional[str]:
        """Synchronous extraction; see ``extract``."""
        if not file_bytes:
            return None

        if len(file_bytes) > self.max_bytes:
            logger.warning(
                f"PDF {filename} has {len(file_bytes)} bytes, over the {self.max_bytes} limit"
            )
            return None

        try:
            fitz_lib = _get_fitz()
            doc = fitz_lib.open(stream=io.BytesIO(file_bytes), filetype="pdf")
            try:
                page_count = min(len(doc), self.max_pages)
                if len(doc) > self.max_pages:
                    logger.info(
                        f"PDF {filename} has {len(doc)} pages, truncating to {self.max_pages}"
                    )
                parts = [doc[page_num].get_text("text") for page_num in range(page_count)]
            finally:
                doc.close()
        except Exception as e:
            logger.warning(f"PDF extraction failed for {filename}: {e}")
            return None

        text = "\n\n".join(part for part in parts if part.strip())
        if not text.strip():
            logger.info(f"PDF {filename} has no extractable text (scanned or image-only)")
            return None

        logger.debug(f"Extracted {len(text)} chars from {page_count} pages of {filename}")
        return text

    async def extract(self, file_bytes: bytes, filename: str = "documento.pdf") -> Optional[str]:
        """
        Extract text from a PDF.

        Args:
            file_bytes: Raw PDF content
            filename: Original filename, for logging

        Returns:
            Extracted text, or None when the PDF is unreadable or has no text layer
        """
        return await asyncio.to_thread(self.extract_text, file_bytes, filename)
