"""Tests for PDF text extraction (PyMuPDF mocked)."""

from unittest.mock import MagicMock, patch

import pytest

from app.core.document_processing import PDFTextExtractor


def _fake_fitz(page_texts):
    pages = []
    for text in page_texts:
        page = MagicMock()
        page.get_text.return_value = text
        pages.append(page)

    doc = MagicMock()
    doc.__len__.return_value = len(pages)
    doc.__getitem__.side_effect = lambda i: pages[i]

    fitz = MagicMock()
    fitz.open.return_value = doc
    return fitz, doc, pages


@pytest.fixture
def patch_fitz():
    patchers = []

    def _start(page_texts):
        fitz, doc, pages = _fake_fitz(page_texts)
        patcher = patch(
            "app.core.document_processing.pdf_extractor._get_fitz", return_value=fitz
        )
        patcher.start()
        patchers.append(patcher)
        return fitz, doc, pages

    yield _start

    for patcher in patchers:
        patcher.stop()


def test_joins_page_text(patch_fitz):
    _, doc, _ = patch_fitz(["Página um", "   ", "Página dois"])

    text = PDFTextExtractor().extract_text(b"%PDF-1.4", "edital.pdf")

    assert text == "Página um\n\nPágina dois"
    doc.close.assert_called_once()


def test_no_text_layer_returns_none(patch_fitz):
    patch_fitz(["", "  \n "])

    assert PDFTextExtractor().extract_text(b"%PDF-1.4", "scan.pdf") is None


def test_truncates_to_max_pages(patch_fitz):
    _, _, pages = patch_fitz(["p1", "p2", "p3"])

    text = PDFTextExtractor(max_pages=2).extract_text(b"%PDF-1.4")

    assert text == "p1\n\np2"
    pages[2].get_text.assert_not_called()


def test_open_failure_returns_none(patch_fitz):
    fitz, _, _ = patch_fitz([])
    fitz.open.side_effect = RuntimeError("cannot open broken document")

    assert PDFTextExtractor().extract_text(b"not a pdf") is None


def test_empty_and_oversized_input():
    extractor = PDFTextExtractor(max_bytes=4)

    assert extractor.extract_text(b"") is None
    assert extractor.extract_text(b"12345") is None


@pytest.mark.asyncio
async def test_async_extract(patch_fitz):
    patch_fitz(["conteúdo"])

    assert await PDFTextExtractor().extract(b"%PDF-1.4", "a.pdf") == "conteúdo"
