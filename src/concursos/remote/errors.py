"""
Erros dos provedores remotos (LLM e embeddings).

Toda falha de provedor é convertida em ProviderError com um tipo explícito,
para que o chamador decida entre fallback, retry ou abortar o item.
"""

from enum import Enum
from typing import Optional

import httpx


class ProviderErrorKind(str, Enum):
    """Tipo da falha do provedor."""

    RATE_LIMITED = "rate_limited"  # HTTP 429
    QUOTA_EXCEEDED = "quota_exceeded"  # créditos / cota esgotados
    MALFORMED = "malformed"  # resposta sem o formato esperado
    TRANSIENT = "transient"  # 5xx, timeout, erro de rede
    REJECTED = "rejected"  # demais 4xx


_QUOTA_MARKERS = ("credit", "quota", "insufficient", "billing")


class ProviderError(Exception):
    """Falha classificada de um provedor remoto."""

    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    @property
    def is_fallback_eligible(self) -> bool:
        """Rate limit e cota esgotada permitem cair para o caminho sem IA."""
        return self.kind in (ProviderErrorKind.RATE_LIMITED, ProviderErrorKind.QUOTA_EXCEEDED)

    @property
    def is_retryable(self) -> bool:
        return self.kind == ProviderErrorKind.TRANSIENT

    def __repr__(self) -> str:
        return f"<ProviderError(kind={self.kind.value}, status={self.status_code}, message={self.message!r})>"


def classify_status(status_code: int, body: str = "") -> ProviderErrorKind:
    """
    Classifica uma resposta HTTP de erro.

    Args:
        status_code: Status HTTP
        body: Corpo da resposta (usado para detectar cota esgotada)

    Returns:
        ProviderErrorKind correspondente
    """
    lowered = (body or "").lower()
    if status_code == 429:
        # Alguns provedores devolvem 429 também para cota mensal esgotada
        if "quota" in lowered or "billing" in lowered:
            return ProviderErrorKind.QUOTA_EXCEEDED
        return ProviderErrorKind.RATE_LIMITED
    if status_code == 402:
        return ProviderErrorKind.QUOTA_EXCEEDED
    if status_code >= 500:
        return ProviderErrorKind.TRANSIENT
    if any(marker in lowered for marker in _QUOTA_MARKERS):
        return ProviderErrorKind.QUOTA_EXCEEDED
    return ProviderErrorKind.REJECTED


def from_http_error(error: httpx.HTTPError) -> ProviderError:
    """Converte uma exceção do httpx em ProviderError."""
    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        body = response.text[:500]
        kind = classify_status(response.status_code, body)
        return ProviderError(
            kind,
            f"HTTP {response.status_code}: {body or error}",
            status_code=response.status_code,
        )
    return ProviderError(ProviderErrorKind.TRANSIENT, f"Erro de transporte: {error}")
