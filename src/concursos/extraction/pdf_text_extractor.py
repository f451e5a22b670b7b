"""
Extração de texto de PDFs com PyMuPDF (fitz).

O texto de cada página é normalizado em NFC e as páginas são concatenadas
com quebra de linha. Documento sem texto (PDF escaneado, só imagens) não
é erro: o chamador decide pelo comprimento mínimo via is_usable().
"""

import logging
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

# Abaixo desta proporção de caracteres alfanuméricos o texto é suspeito
LOW_DENSITY_RATIO = 0.3


class ExtractionError(RuntimeError):
    """PDF que o PyMuPDF não consegue abrir."""


@dataclass
class ExtractionResult:
    """Texto extraído de um PDF."""

    text: str
    page_count: int
    char_count: int
    alnum_ratio: float

    def is_usable(self, min_chars: int = 50) -> bool:
        return self.char_count >= min_chars

    @property
    def low_density(self) -> bool:
        """Muito símbolo e pouco texto: provável OCR ruim ou fonte corrompida."""
        return self.char_count > 0 and self.alnum_ratio < LOW_DENSITY_RATIO


class PdfTextExtractor:
    """Extrai o texto plano de todas as páginas de um PDF."""

    def extract_bytes(self, pdf_bytes: bytes) -> ExtractionResult:
        """
        Extrai texto de um PDF em memória.

        Args:
            pdf_bytes: Conteúdo binário do PDF

        Returns:
            ExtractionResult (texto pode ser vazio)

        Raises:
            ExtractionError: Se PyMuPDF não conseguir abrir o PDF
        """
        import fitz

        try:
            doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as e:
            raise ExtractionError(f"PyMuPDF não conseguiu abrir o PDF: {e}") from e

        try:
            pages = []
            for page in doc:
                page_text = unicodedata.normalize("NFC", page.get_text("text"))
                pages.append(page_text.rstrip())
            page_count = len(doc)
        finally:
            doc.close()

        text = "\n".join(pages).strip()
        non_space = [ch for ch in text if not ch.isspace()]
        alnum = sum(1 for ch in non_space if ch.isalnum())
        ratio = alnum / len(non_space) if non_space else 0.0

        result = ExtractionResult(
            text=text,
            page_count=page_count,
            char_count=len(text),
            alnum_ratio=ratio,
        )
        if result.low_density:
            logger.warning(
                f"PyMuPDF: texto com baixa densidade ({ratio:.0%} alfanumérico, "
                f"{page_count} páginas)"
            )
        return result

    def extract_file(self, path: Union[str, Path]) -> ExtractionResult:
        """Lê o arquivo e extrai o texto."""
        pdf_bytes = Path(path).read_bytes()
        return self.extract_bytes(pdf_bytes)
