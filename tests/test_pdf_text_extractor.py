"""
Testes do extrator de texto (PyMuPDF).
"""

import unicodedata

import pytest

from concursos.extraction import ExtractionError, PdfTextExtractor

from conftest import SAMPLE_LINES, build_pdf


class TestPdfTextExtractor:
    """Testes para PdfTextExtractor."""

    def test_extract_bytes(self):
        result = PdfTextExtractor().extract_bytes(build_pdf(SAMPLE_LINES))

        assert result.page_count == 1
        assert SAMPLE_LINES[0] in result.text
        assert result.char_count == len(result.text)
        assert result.is_usable()
        assert not result.low_density

    def test_pages_joined(self):
        result = PdfTextExtractor().extract_bytes(build_pdf(SAMPLE_LINES[:1], pages=2))
        assert result.page_count == 2
        assert result.text.count(SAMPLE_LINES[0]) == 2

    def test_text_is_nfc(self):
        result = PdfTextExtractor().extract_bytes(build_pdf(["Tributação e lançamento"]))
        assert result.text == unicodedata.normalize("NFC", result.text)

    def test_blank_pdf_is_not_an_error(self):
        result = PdfTextExtractor().extract_bytes(build_pdf([]))
        assert result.char_count == 0
        assert not result.is_usable()

    def test_corrupt_pdf_raises(self):
        with pytest.raises(ExtractionError):
            PdfTextExtractor().extract_bytes(b"isto nao e um pdf")

    def test_extract_file(self, tmp_path):
        path = tmp_path / "resumo.pdf"
        path.write_bytes(build_pdf(SAMPLE_LINES))
        assert PdfTextExtractor().extract_file(path).page_count == 1
