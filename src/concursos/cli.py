"""
CLI de indexação do banco offline de PDFs.

Exemplos:
    concursos-index "/dados/ÁREA FISCAL"
    concursos-index --dry-run --disciplina tributário
    concursos-index --max-pdfs 100 --ai-cleanup
    AI_CLEANUP=true concursos-index --no-ai-cleanup

Código de saída: 1 se algum arquivo falhou, 0 caso contrário.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from .config import config
from .ingestion.indexer import BankIndexer, IndexOptions, IndexStats
from .ingestion.text_normalizer import NormalizerConfig, TextNormalizer
from .registry.content_store import ContentStore
from .remote.embedder import RemoteEmbedder
from .remote.llm import RemoteLLM

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="concursos-index",
        description="Indexa o banco offline de PDFs (resumos) com embeddings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exemplos:
    concursos-index "/dados/ÁREA FISCAL"
    concursos-index --dry-run --disciplina tributário
        """,
    )
    parser.add_argument(
        "base_dirs",
        nargs="*",
        help="Pastas do banco (default: $BANK_DIRS)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Classifica e extrai sem gerar embeddings nem gravar",
    )
    parser.add_argument(
        "--disciplina",
        help="Processa apenas disciplinas cujo nome contém este texto",
    )
    parser.add_argument(
        "--max-pdfs",
        type=int,
        default=config.max_pdfs,
        help="Limite de PDFs processados (0 = sem limite)",
    )
    parser.add_argument(
        "--ai-cleanup",
        action=argparse.BooleanOptionalAction,
        default=config.ai_cleanup,
        help="Usa o LLM para limpar o texto (cai para regras em rate limit/cota)",
    )
    parser.add_argument(
        "--database-url",
        help="URL do banco (default: $DATABASE_URL)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Loga cada arquivo",
    )
    return parser


def print_summary(stats: IndexStats, dry_run: bool):
    logger.info("=" * 60)
    logger.info(f"RESULTADO{' (DRY-RUN)' if dry_run else ''}")
    logger.info("=" * 60)
    logger.info(f"Processados: {stats.total}")
    logger.info(f"Indexados:   {stats.indexed}")
    logger.info(f"Pulados:     {stats.skipped}")
    for reason, count in sorted(stats.skip_reasons.items()):
        logger.info(f"  - {reason}: {count}")
    logger.info(f"Erros:       {stats.errors}")
    for path in stats.failed_files:
        logger.info(f"  - {path}")
    logger.info(f"Tempo:       {stats.time_ms / 1000:.1f}s")
    logger.info("=" * 60)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    base_dirs = args.base_dirs or config.bank_dirs

    logger.info("=" * 60)
    logger.info("INDEXAÇÃO DO BANCO OFFLINE")
    logger.info("=" * 60)
    logger.info(f"Pastas: {', '.join(base_dirs)}")
    if args.dry_run:
        logger.info("Modo dry-run: sem embeddings e sem gravação")

    store = ContentStore(database_url=args.database_url or config.database_url, echo=config.database_echo)
    normalizer = TextNormalizer(
        NormalizerConfig(
            min_chars=config.min_text_chars,
            max_chars=config.body_max_chars,
            ai_input_chars=config.ai_cleanup_input_chars,
        ),
        llm=RemoteLLM() if args.ai_cleanup and not args.dry_run else None,
    )
    indexer = BankIndexer(
        store=store,
        embedder=None if args.dry_run else RemoteEmbedder(),
        normalizer=normalizer,
        embed_input_chars=config.embed_input_chars,
    )

    stats = indexer.run(
        IndexOptions(
            base_dirs=base_dirs,
            dry_run=args.dry_run,
            discipline_filter=args.disciplina,
            max_files=args.max_pdfs or None,
        )
    )
    print_summary(stats, args.dry_run)
    return 1 if stats.errors > 0 else 0


if __name__ == "__main__":
    sys.exit(main())
