"""
Remote Embedder - Cliente para provedor de embeddings (API OpenAI-compatible).

Chama o endpoint /embeddings e devolve vetores já no formato literal
"[v1,v2,...]" aceito pela coluna vector do PostgreSQL.

Uso:
    from concursos.remote import RemoteEmbedder

    embedder = RemoteEmbedder()
    literal = embedder.embed("texto do resumo")
    literals = embedder.embed_batch(["texto1", "texto2"])
"""

import os
import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence

import httpx

from .errors import ProviderError, ProviderErrorKind, from_http_error

logger = logging.getLogger(__name__)


@dataclass
class RemoteEmbedderConfig:
    """Configuração do cliente de embeddings remoto."""

    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "text-embedding-3-small"
    dimensions: int = 1536
    timeout: float = 60.0
    max_retries: int = 3
    retry_delay: float = 1.0

    # Limites de entrada
    max_chars_single: int = 30000
    max_chars_batch: int = 8000
    batch_size: int = 20
    batch_delay: float = 0.1  # pausa entre lotes (segundos)

    @classmethod
    def from_env(cls) -> "RemoteEmbedderConfig":
        """Carrega configuração de variáveis de ambiente."""
        return cls(
            base_url=os.getenv("EMBEDDING_BASE_URL", "https://api.openai.com/v1").rstrip("/"),
            api_key=os.getenv("EMBEDDING_API_KEY", os.getenv("OPENAI_API_KEY", "")),
            model=os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"),
            dimensions=int(os.getenv("EMBEDDING_DIMENSIONS", "1536")),
            timeout=float(os.getenv("EMBEDDING_TIMEOUT", "60")),
            max_retries=int(os.getenv("EMBEDDING_MAX_RETRIES", "3")),
            retry_delay=float(os.getenv("EMBEDDING_RETRY_DELAY", "1.0")),
            max_chars_single=int(os.getenv("EMBEDDING_MAX_CHARS", "30000")),
            max_chars_batch=int(os.getenv("EMBEDDING_MAX_CHARS_BATCH", "8000")),
            batch_size=int(os.getenv("EMBEDDING_BATCH_SIZE", "20")),
            batch_delay=float(os.getenv("EMBEDDING_BATCH_DELAY", "0.1")),
        )


def to_vector_literal(vector: Sequence[float]) -> str:
    """Serializa um vetor no formato textual do pgvector."""
    return "[" + ",".join(repr(float(v)) for v in vector) + "]"


def parse_vector_literal(literal: str) -> list[float]:
    """Converte "[a,b,...]" de volta para lista de floats."""
    body = literal.strip().lstrip("[").rstrip("]")
    if not body:
        return []
    return [float(part) for part in body.split(",")]


class RemoteEmbedder:
    """
    Cliente de embeddings remoto.

    Toda falha vira ProviderError; erros transitórios são repetidos até
    max_retries. Em lote, a falha de qualquer sub-lote aborta a chamada
    inteira.
    """

    def __init__(
        self,
        config: Optional[RemoteEmbedderConfig] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.config = config or RemoteEmbedderConfig.from_env()
        self._client: Optional[httpx.Client] = client

    @property
    def client(self) -> httpx.Client:
        """Cliente HTTP com lazy initialization."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.config.timeout,
                limits=httpx.Limits(max_connections=10),
            )
        return self._client

    @property
    def embedding_dim(self) -> int:
        return self.config.dimensions

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    def _request(self, inputs: list[str]) -> list[list[float]]:
        """Uma chamada ao endpoint /embeddings, com retry de erros transitórios."""
        payload = {
            "model": self.config.model,
            "input": inputs,
            "dimensions": self.config.dimensions,
        }

        attempts = max(1, self.config.max_retries)
        last_error: Optional[ProviderError] = None
        for attempt in range(attempts):
            try:
                response = self.client.post(
                    f"{self.config.base_url}/embeddings",
                    json=payload,
                    headers=self._headers(),
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                last_error = from_http_error(e)
                if not last_error.is_retryable:
                    raise last_error from e
                logger.warning(
                    f"Erro no embedder remoto (tentativa {attempt + 1}/{attempts}): "
                    f"{last_error.message}"
                )
                if attempt < attempts - 1:
                    time.sleep(self.config.retry_delay)
                continue

            return self._parse_response(response, expected=len(inputs))

        raise last_error or ProviderError(ProviderErrorKind.TRANSIENT, "Falha no embedder remoto")

    def _parse_response(self, response: httpx.Response, expected: int) -> list[list[float]]:
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                ProviderErrorKind.MALFORMED,
                f"Resposta de embeddings não é JSON: {e}",
                status_code=response.status_code,
            ) from e

        items = data.get("data") if isinstance(data, dict) else None
        if not isinstance(items, list) or len(items) != expected:
            raise ProviderError(
                ProviderErrorKind.MALFORMED,
                f"Esperados {expected} embeddings, recebidos {len(items) if isinstance(items, list) else 0}",
                status_code=response.status_code,
            )

        # A API pode devolver fora de ordem; "index" manda
        ordered = sorted(items, key=lambda item: item.get("index", 0))
        vectors = []
        for item in ordered:
            vector = item.get("embedding")
            if not isinstance(vector, list) or len(vector) != self.config.dimensions:
                raise ProviderError(
                    ProviderErrorKind.MALFORMED,
                    f"Embedding com dimensão inválida (esperado {self.config.dimensions})",
                    status_code=response.status_code,
                )
            vectors.append(vector)
        return vectors

    def embed(self, text: str) -> str:
        """
        Gera o embedding de um único texto.

        Args:
            text: Texto de entrada (truncado em max_chars_single)

        Returns:
            Vetor no formato literal "[v1,v2,...]"
        """
        vector = self._request([text[: self.config.max_chars_single]])[0]
        return to_vector_literal(vector)

    def embed_batch(self, texts: list[str]) -> list[str]:
        """
        Gera embeddings em lotes, preservando a ordem de entrada.

        Cada texto é truncado em max_chars_batch. Entre lotes há uma pausa
        fixa de batch_delay segundos.

        Args:
            texts: Textos de entrada

        Returns:
            Lista de vetores literais, na mesma ordem de texts

        Raises:
            ProviderError: Se qualquer lote falhar
        """
        if not texts:
            return []

        start_time = time.perf_counter()
        size = max(1, self.config.batch_size)
        literals: list[str] = []

        for offset in range(0, len(texts), size):
            if offset > 0 and self.config.batch_delay > 0:
                time.sleep(self.config.batch_delay)
            chunk = [t[: self.config.max_chars_batch] for t in texts[offset:offset + size]]
            literals.extend(to_vector_literal(v) for v in self._request(chunk))

        elapsed = (time.perf_counter() - start_time) * 1000
        logger.debug(f"Embeddings remotos: {len(texts)} textos em {elapsed:.2f}ms")
        return literals

    def close(self):
        """Fecha conexões HTTP."""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


# Singleton
_remote_embedder: Optional[RemoteEmbedder] = None


def get_remote_embedder(config: Optional[RemoteEmbedderConfig] = None) -> RemoteEmbedder:
    """Retorna instância singleton do embedder remoto."""
    global _remote_embedder
    if _remote_embedder is None:
        _remote_embedder = RemoteEmbedder(config)
    return _remote_embedder
