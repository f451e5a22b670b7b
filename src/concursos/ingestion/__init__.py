"""
Indexação do banco offline de PDFs.

Pipeline:
1. FilesystemCrawler (PDFs em profundidade)
2. PdfTextExtractor (PyMuPDF)
3. TextNormalizer (regras + IA opcional)
4. classify_path (taxonomia por pasta)
5. RemoteEmbedder (vetor 1536d)
6. ContentStore (insert-or-ignore por caminho)
"""

from .crawler import FilesystemCrawler, iter_pdf_files
from .text_normalizer import (
    CleanupReport,
    NormalizationResult,
    NormalizerConfig,
    TextNormalizer,
    fix_spacing,
)
from .indexer import BankIndexer, IndexOptions, IndexStats, SkipReason

__all__ = [
    # Crawler
    "FilesystemCrawler",
    "iter_pdf_files",
    # Normalização
    "CleanupReport",
    "NormalizationResult",
    "NormalizerConfig",
    "TextNormalizer",
    "fix_spacing",
    # Indexador
    "BankIndexer",
    "IndexOptions",
    "IndexStats",
    "SkipReason",
]
