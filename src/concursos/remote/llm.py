"""
Remote LLM - Cliente para provedor de chat (API OpenAI-compatible).

Chama o endpoint /chat/completions para limpeza de texto e extração
estruturada de editais.

Uso:
    from concursos.remote import RemoteLLM

    llm = RemoteLLM()
    response = llm.chat([
        {"role": "user", "content": "Extraia as disciplinas do edital..."}
    ])
    print(response.content)
"""

import os
import logging
import time
from dataclasses import dataclass, field
from typing import Optional

import httpx

from .errors import ProviderError, ProviderErrorKind, from_http_error

logger = logging.getLogger(__name__)


@dataclass
class RemoteLLMConfig:
    """Configuração do cliente LLM remoto."""

    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    timeout: float = 300.0  # LLM pode demorar
    max_retries: int = 2
    retry_delay: float = 2.0

    # Parâmetros de geração padrão
    temperature: float = 0.2
    max_tokens: int = 4096

    @classmethod
    def from_env(cls) -> "RemoteLLMConfig":
        """Carrega configuração de variáveis de ambiente."""
        return cls(
            base_url=os.getenv("LLM_BASE_URL", "https://api.openai.com/v1").rstrip("/"),
            api_key=os.getenv("LLM_API_KEY", os.getenv("OPENAI_API_KEY", "")),
            model=os.getenv("LLM_MODEL", "gpt-4o-mini"),
            timeout=float(os.getenv("LLM_TIMEOUT", "300")),
            max_retries=int(os.getenv("LLM_MAX_RETRIES", "2")),
            retry_delay=float(os.getenv("LLM_RETRY_DELAY", "2.0")),
            temperature=float(os.getenv("LLM_TEMPERATURE", "0.2")),
            max_tokens=int(os.getenv("LLM_MAX_TOKENS", "4096")),
        )

    @classmethod
    def for_extraction(cls) -> "RemoteLLMConfig":
        """Configuração otimizada para extração estruturada."""
        config = cls.from_env()
        config.temperature = 0.0
        config.max_tokens = 4096
        return config


@dataclass
class LLMResponse:
    """Resposta do LLM."""

    content: str
    model: str
    usage: dict = field(default_factory=dict)
    latency_ms: float = 0.0
    finish_reason: str = "stop"


class RemoteLLM:
    """
    Cliente para LLM remoto - API OpenAI-compatible.

    Falhas são sempre convertidas em ProviderError. Apenas erros
    transitórios (5xx, timeout, rede) são repetidos.
    """

    def __init__(
        self,
        config: Optional[RemoteLLMConfig] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.config = config or RemoteLLMConfig.from_env()
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

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    def chat(
        self,
        messages: list[dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs,
    ) -> LLMResponse:
        """
        Gera resposta via chat completion.

        Args:
            messages: Lista de mensagens [{"role": "user", "content": "..."}]
            temperature: Temperatura de amostragem (0.0 = determinístico)
            max_tokens: Máximo de tokens na resposta
            **kwargs: Parâmetros adicionais para a API

        Returns:
            LLMResponse com conteúdo gerado

        Raises:
            ProviderError: Falha classificada (após retries, se transitória)
        """
        start_time = time.perf_counter()

        payload = {
            "model": self.config.model,
            "messages": messages,
            "temperature": temperature if temperature is not None else self.config.temperature,
            "max_tokens": max_tokens if max_tokens is not None else self.config.max_tokens,
            **kwargs,
        }

        attempts = max(1, self.config.max_retries)
        last_error: Optional[ProviderError] = None
        for attempt in range(attempts):
            try:
                response = self.client.post(
                    f"{self.config.base_url}/chat/completions",
                    json=payload,
                    headers=self._headers(),
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                last_error = from_http_error(e)
                if not last_error.is_retryable:
                    raise last_error from e
                logger.warning(
                    f"Erro no LLM remoto (tentativa {attempt + 1}/{attempts}): {last_error.message}"
                )
                if attempt < attempts - 1:
                    time.sleep(self.config.retry_delay)
                continue

            result = self._parse_response(response)
            result.latency_ms = (time.perf_counter() - start_time) * 1000
            logger.debug(
                f"LLM remoto: {result.usage.get('total_tokens', 0)} tokens "
                f"em {result.latency_ms:.2f}ms"
            )
            return result

        raise last_error or ProviderError(ProviderErrorKind.TRANSIENT, "Falha no LLM remoto")

    def _parse_response(self, response: httpx.Response) -> LLMResponse:
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                ProviderErrorKind.MALFORMED,
                f"Resposta do LLM não é JSON: {e}",
                status_code=response.status_code,
            ) from e

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise ProviderError(
                ProviderErrorKind.MALFORMED,
                "Resposta do LLM sem choices",
                status_code=response.status_code,
            )

        choice = choices[0]
        content = (choice.get("message") or {}).get("content") or ""
        if not content.strip():
            raise ProviderError(
                ProviderErrorKind.MALFORMED,
                "LLM retornou conteúdo vazio",
                status_code=response.status_code,
            )

        return LLMResponse(
            content=content,
            model=data.get("model", self.config.model),
            usage=data.get("usage") or {},
            finish_reason=choice.get("finish_reason") or "stop",
        )

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs,
    ) -> str:
        """
        Gera texto a partir de um prompt simples.

        Args:
            prompt: Prompt do usuário
            system_prompt: Prompt de sistema (opcional)
            **kwargs: Parâmetros adicionais (temperature, max_tokens...)

        Returns:
            Texto gerado
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return self.chat(messages, **kwargs).content

    def close(self):
        """Fecha conexões HTTP."""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
