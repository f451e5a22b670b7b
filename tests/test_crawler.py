"""
Testes do crawler do banco offline.

Cobre:
- Ordem alfabética em profundidade
- Entradas ocultas e pastas .zip ignoradas
- Extensão .pdf sem diferenciar caixa
- Limite global de arquivos
- Iteração reiniciável e pastas ilegíveis
"""

import os

import pytest

from concursos.ingestion import crawler as crawler_module
from concursos.ingestion.crawler import FilesystemCrawler, iter_pdf_files


def _touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"%PDF-1.4")
    return path


@pytest.fixture
def bank(tmp_path):
    root = tmp_path / "banco"
    _touch(root / "b.pdf")
    _touch(root / "a" / "x.pdf")
    _touch(root / "a" / "y.PDF")
    _touch(root / ".oculta" / "z.pdf")
    _touch(root / ".rascunho.pdf")
    _touch(root / "extraido.zip" / "w.pdf")
    _touch(root / "arquivo.zip")
    _touch(root / "notas.txt")
    return root


def _relative(paths, root):
    return [os.path.relpath(p, root) for p in paths]


class TestFilesystemCrawler:
    """Testes para FilesystemCrawler."""

    def test_depth_first_sorted_order(self, bank):
        """Test: pastas e arquivos em ordem alfabética, descendo antes de seguir."""
        paths = list(FilesystemCrawler([bank]))
        assert _relative(paths, bank) == [
            os.path.join("a", "x.pdf"),
            os.path.join("a", "y.PDF"),
            "b.pdf",
        ]

    def test_hidden_entries_and_zip_folders_skipped(self, bank):
        """Test: nada sob .oculta ou extraido.zip é emitido."""
        paths = list(FilesystemCrawler([bank]))
        assert not any(".oculta" in p or "extraido.zip" in p or ".rascunho" in p for p in paths)

    def test_paths_are_absolute(self, bank):
        paths = list(FilesystemCrawler([bank]))
        assert all(os.path.isabs(p) for p in paths)

    def test_max_files_stops_traversal(self, bank):
        """Test: max_files corta a travessia."""
        paths = list(FilesystemCrawler([bank], max_files=2))
        assert _relative(paths, bank) == [os.path.join("a", "x.pdf"), os.path.join("a", "y.PDF")]

    def test_max_files_is_global_across_roots(self, tmp_path):
        """Test: o limite vale para todas as pastas somadas."""
        first = tmp_path / "primeira"
        second = tmp_path / "segunda"
        _touch(first / "um.pdf")
        _touch(second / "dois.pdf")
        _touch(second / "tres.pdf")

        paths = list(FilesystemCrawler([first, second], max_files=2))
        assert [os.path.basename(p) for p in paths] == ["um.pdf", "dois.pdf"]

    def test_zero_max_files_means_unlimited(self, bank):
        assert len(list(FilesystemCrawler([bank], max_files=0))) == 3

    def test_iteration_restarts(self, bank):
        """Test: cada iteração recomeça do início."""
        crawler = FilesystemCrawler([bank])
        assert list(crawler) == list(crawler)

    def test_lazy_iteration(self, bank):
        """Test: o primeiro caminho sai sem percorrer o resto."""
        iterator = iter(FilesystemCrawler([bank]))
        assert os.path.basename(next(iterator)) == "x.pdf"

    def test_missing_root_is_skipped(self, tmp_path, bank):
        paths = list(FilesystemCrawler([tmp_path / "nao-existe", bank]))
        assert len(paths) == 3

    def test_unreadable_folder_is_skipped(self, bank, monkeypatch):
        """Test: pasta que não pode ser lida gera warning e a travessia segue."""
        real_scandir = os.scandir

        def flaky_scandir(path):
            if os.fspath(path).endswith(os.sep + "a"):
                raise PermissionError("acesso negado")
            return real_scandir(path)

        monkeypatch.setattr(crawler_module.os, "scandir", flaky_scandir)

        paths = list(FilesystemCrawler([bank]))
        assert [os.path.basename(p) for p in paths] == ["b.pdf"]

    def test_iter_pdf_files_shortcut(self, bank):
        assert list(iter_pdf_files([bank], max_files=1)) == list(FilesystemCrawler([bank], max_files=1))
