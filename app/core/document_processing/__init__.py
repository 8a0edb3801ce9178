"""Text extraction for documents attached to conversations."""

from app.core.document_processing.pdf_extractor import PDFTextExtractor

__all__ = ["PDFTextExtractor"]
