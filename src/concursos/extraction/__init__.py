"""
Extração de texto de PDFs.
"""

from .pdf_text_extractor import (
    ExtractionError,
    ExtractionResult,
    PdfTextExtractor,
)

__all__ = [
    "ExtractionError",
    "ExtractionResult",
    "PdfTextExtractor",
]
