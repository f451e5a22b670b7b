"""
Configuração global do pytest.

Coloca src/ no path e fornece fixtures compartilhadas: banco SQLite
temporário, geração de PDFs com PyMuPDF e clientes remotos falsos.
"""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Adiciona o diretório src ao path para que os imports funcionem
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from concursos.registry.content_store import ContentStore  # noqa: E402
from concursos.registry.database import create_db_engine  # noqa: E402
from concursos.registry.models import NoticeStatus  # noqa: E402
from concursos.registry.notice_registry import NoticeRegistry  # noqa: E402
from concursos.remote.embedder import to_vector_literal  # noqa: E402
from concursos.remote.llm import LLMResponse, RemoteLLM  # noqa: E402


def build_pdf(lines, pages=1) -> bytes:
    """PDF com as linhas informadas (uma por linha, fonte 9) em memória."""
    import fitz

    doc = fitz.open()
    for _ in range(pages):
        page = doc.new_page()
        y = 72
        for line in lines:
            page.insert_text((40, y), line, fontsize=9)
            y += 14
    data = doc.tobytes()
    doc.close()
    return data


def write_pdf(path: Path, lines) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(build_pdf(lines))
    return path


# Texto com linhas longas o bastante para sair da zona de capa
SAMPLE_LINES = [
    "O credito tributario decorre da obrigacao principal e tem a mesma natureza.",
    "A obrigacao tributaria principal surge com a ocorrencia do fato gerador.",
    "O lancamento e o procedimento administrativo que constitui o credito fiscal.",
]


class FakeEmbedder:
    """Embedder determinístico que registra os textos recebidos."""

    def __init__(self, vector=None):
        self.vector = vector or [0.1, 0.2, 0.3]
        self.calls = []

    def embed(self, text: str) -> str:
        self.calls.append(text)
        return to_vector_literal(self.vector)


def fake_llm(content: str) -> Mock:
    """RemoteLLM falso cujo chat() devolve sempre `content`."""
    llm = Mock(spec=RemoteLLM)
    llm.chat.return_value = LLMResponse(content=content, model="fake")
    return llm


def activate(registry: NoticeRegistry, notice_id: str):
    """Leva um edital em QUEUED até ACTIVE pelas transições válidas."""
    registry.acquire_notice(notice_id)
    registry.advance(notice_id, NoticeStatus.MAPPING)
    registry.advance(notice_id, NoticeStatus.PLANNING)
    registry.advance(notice_id, NoticeStatus.ACTIVE)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'concursos.db'}"


@pytest.fixture
def engine(database_url):
    engine = create_db_engine(database_url)
    yield engine
    engine.dispose()


@pytest.fixture
def content_store(engine):
    return ContentStore(engine=engine)


@pytest.fixture
def notice_registry(engine):
    return NoticeRegistry(engine=engine)


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def sample_pdf_bytes():
    return build_pdf(SAMPLE_LINES)
