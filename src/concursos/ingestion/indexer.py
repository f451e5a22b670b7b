"""
Indexador do banco offline de PDFs.

Para cada PDF encontrado pelo crawler:

    classificar → filtrar → garantir disciplina → checar existência →
    extrair → normalizar → gate de tamanho → embedding → insert-or-ignore

Falha em um arquivo nunca aborta a execução: o erro é contado e logado e
o próximo arquivo segue. Rodar de novo sobre o mesmo banco não duplica
registros (chave: caminho absoluto do arquivo).
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..classification.discipline_classifier import classify_path
from ..classification.taxonomy import Taxonomy, default_taxonomy
from ..extraction.pdf_text_extractor import PdfTextExtractor
from ..registry.content_store import ContentStore
from ..registry.models import ContentKind
from ..remote.embedder import RemoteEmbedder
from .crawler import FilesystemCrawler
from .text_normalizer import TextNormalizer

logger = logging.getLogger(__name__)


class SkipReason:
    """Motivos de arquivo pulado (não é erro)."""

    NO_DISCIPLINE = "sem_disciplina"
    FILTERED = "filtro"
    ALREADY_INDEXED = "ja_indexado"
    NO_TEXT = "sem_texto"
    TEXT_TOO_SHORT = "texto_curto"
    CONFLICT = "conflito"


@dataclass
class IndexOptions:
    """Parâmetros de uma execução."""

    base_dirs: Sequence[str]
    dry_run: bool = False
    discipline_filter: Optional[str] = None
    max_files: Optional[int] = None


@dataclass
class IndexStats:
    """Contadores da execução."""

    total: int = 0
    indexed: int = 0
    skipped: int = 0
    errors: int = 0
    time_ms: float = 0.0
    skip_reasons: dict = field(default_factory=dict)
    failed_files: list = field(default_factory=list)

    def skip(self, reason: str):
        self.skipped += 1
        self.skip_reasons[reason] = self.skip_reasons.get(reason, 0) + 1

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "indexed": self.indexed,
            "skipped": self.skipped,
            "errors": self.errors,
            "time_ms": round(self.time_ms, 2),
            "skip_reasons": dict(self.skip_reasons),
            "failed_files": list(self.failed_files),
        }


def _title_from_path(path: str) -> str:
    name = os.path.basename(path)
    if name.lower().endswith(".pdf"):
        name = name[:-4]
    return name


class BankIndexer:
    """
    Orquestra a indexação do banco offline.

    Uso:
        indexer = BankIndexer(store=ContentStore(), embedder=RemoteEmbedder())
        stats = indexer.run(IndexOptions(base_dirs=["/dados/ÁREA FISCAL"]))
    """

    def __init__(
        self,
        store: ContentStore,
        embedder: Optional[RemoteEmbedder] = None,
        extractor: Optional[PdfTextExtractor] = None,
        normalizer: Optional[TextNormalizer] = None,
        taxonomy: Optional[Taxonomy] = None,
        embed_input_chars: int = 8000,
    ):
        """
        Args:
            store: Banco de conteúdo
            embedder: Cliente de embeddings (obrigatório fora de dry-run)
            extractor: Extrator de texto (default: PdfTextExtractor())
            normalizer: Normalizador (default: só regras)
            taxonomy: Tabela de disciplinas (default: default_taxonomy())
            embed_input_chars: Quantos caracteres do texto bruto vão ao embedding
        """
        self.store = store
        self.embedder = embedder
        self.extractor = extractor or PdfTextExtractor()
        self.normalizer = normalizer or TextNormalizer()
        self.taxonomy = default_taxonomy() if taxonomy is None else taxonomy
        self.embed_input_chars = embed_input_chars
        self._discipline_cache: dict[str, str] = {}

    def run(self, options: IndexOptions) -> IndexStats:
        """
        Executa a indexação.

        Args:
            options: Pastas, dry-run, filtro de disciplina, limite de arquivos

        Returns:
            IndexStats com os contadores finais
        """
        if not options.dry_run and self.embedder is None:
            raise ValueError("Embedder é obrigatório fora de dry-run")

        stats = IndexStats()
        start_time = time.perf_counter()
        discipline_filter = (options.discipline_filter or "").strip().lower() or None

        logger.info(
            f"Indexação iniciada: {len(options.base_dirs)} pasta(s), "
            f"dry_run={options.dry_run}, filtro={discipline_filter or '-'}"
        )

        crawler = FilesystemCrawler(options.base_dirs, max_files=options.max_files)
        for path in crawler:
            stats.total += 1
            try:
                self._process_file(path, options.dry_run, discipline_filter, stats)
            except Exception as e:
                stats.errors += 1
                stats.failed_files.append(path)
                logger.error(f"Erro ao indexar {os.path.basename(path)}: {e}")

        stats.time_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Indexação concluída: {stats.total} processados, {stats.indexed} indexados, "
            f"{stats.skipped} pulados, {stats.errors} erros em {stats.time_ms / 1000:.1f}s"
        )
        return stats

    def _ensure_discipline(self, slug: str, name: str) -> str:
        discipline_id = self._discipline_cache.get(slug)
        if discipline_id is None:
            discipline_id = self.store.ensure_discipline(slug, name)
            self._discipline_cache[slug] = discipline_id
        return discipline_id

    def _process_file(
        self,
        path: str,
        dry_run: bool,
        discipline_filter: Optional[str],
        stats: IndexStats,
    ):
        entry = classify_path(path, self.taxonomy)
        if entry is None:
            logger.debug(f"Sem disciplina: {path}")
            stats.skip(SkipReason.NO_DISCIPLINE)
            return

        if discipline_filter and discipline_filter not in entry.name.lower():
            stats.skip(SkipReason.FILTERED)
            return

        discipline_id = None if dry_run else self._ensure_discipline(entry.slug, entry.name)

        source_key = os.path.abspath(path)
        if self.store.exists(source_key):
            stats.skip(SkipReason.ALREADY_INDEXED)
            return

        extraction = self.extractor.extract_file(source_key)
        if not extraction.is_usable(self.normalizer.config.min_chars):
            logger.debug(f"Sem texto utilizável ({extraction.char_count} chars): {path}")
            stats.skip(SkipReason.NO_TEXT)
            return

        normalized = self.normalizer.normalize(extraction.text)
        if normalized.skipped:
            stats.skip(SkipReason.TEXT_TOO_SHORT)
            return

        if dry_run:
            stats.indexed += 1
            return

        # Embedding do texto bruto: o início do material carrega mais contexto
        embedding = self.embedder.embed(extraction.text[: self.embed_input_chars])

        inserted = self.store.insert_content(
            source_key=source_key,
            title=_title_from_path(source_key),
            body=normalized.text,
            discipline_id=discipline_id,
            embedding=embedding,
            kind=ContentKind.RESUMO,
        )
        if inserted:
            stats.indexed += 1
            logger.debug(f"Indexado [{entry.slug}] {os.path.basename(path)}")
        else:
            stats.skip(SkipReason.CONFLICT)
