"""
Crawler do banco offline de PDFs.

Percorre uma ou mais pastas em profundidade, em ordem alfabética, e
devolve os caminhos dos PDFs sob demanda. Cada iteração recomeça do zero.
"""

import logging
import os
from typing import Iterator, Optional, Sequence, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _is_pdf(name: str) -> bool:
    return name.lower().endswith(".pdf")


class FilesystemCrawler:
    """
    Gerador lazy de arquivos PDF.

    Regras:
        - entradas ocultas (começando com ".") são ignoradas
        - pastas terminadas em ".zip" (arquivos extraídos) são ignoradas
        - só arquivos ".pdf" (qualquer caixa) são emitidos
        - max_files interrompe a travessia ao ser atingido
        - pasta ilegível gera warning e é pulada
    """

    def __init__(self, roots: Sequence[PathLike], max_files: Optional[int] = None):
        self.roots = [os.fspath(root) for root in roots]
        self.max_files = max_files if max_files and max_files > 0 else None

    def __iter__(self) -> Iterator[str]:
        emitted = 0
        for root in self.roots:
            if self.max_files is not None and emitted >= self.max_files:
                return
            if not os.path.isdir(root):
                logger.warning(f"Pasta do banco não encontrada: {root}")
                continue
            for path in self._walk(os.path.abspath(root)):
                yield path
                emitted += 1
                if self.max_files is not None and emitted >= self.max_files:
                    return

    def _walk(self, directory: str) -> Iterator[str]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            logger.warning(f"Não foi possível ler a pasta {directory}: {e}")
            return

        for entry in entries:
            if _is_hidden(entry.name):
                continue
            try:
                is_dir = entry.is_dir()
            except OSError as e:
                logger.warning(f"Entrada ilegível {entry.path}: {e}")
                continue

            if is_dir:
                if entry.name.lower().endswith(".zip"):
                    continue
                yield from self._walk(entry.path)
            elif _is_pdf(entry.name):
                yield entry.path


def iter_pdf_files(roots: Sequence[PathLike], max_files: Optional[int] = None) -> Iterator[str]:
    """Atalho funcional para FilesystemCrawler."""
    return iter(FilesystemCrawler(roots, max_files=max_files))
