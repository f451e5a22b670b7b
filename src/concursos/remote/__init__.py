"""
Remote Clients - Clientes para provedores remotos de IA.

Arquitetura:
    - Provedor de embeddings: text-embedding-3-small (1536d)
    - Provedor de chat: limpeza de texto e extração de editais

Uso:
    from concursos.remote import RemoteEmbedder, RemoteLLM

    embedder = RemoteEmbedder()
    literal = embedder.embed("texto")  # "[0.01,-0.2,...]"

    llm = RemoteLLM()
    response = llm.chat([{"role": "user", "content": "Olá"}])

Configuração:
    export EMBEDDING_BASE_URL=https://api.openai.com/v1
    export EMBEDDING_API_KEY=sk-...
    export LLM_BASE_URL=https://api.openai.com/v1
    export LLM_API_KEY=sk-...
"""

from .errors import ProviderError, ProviderErrorKind
from .embedder import (
    RemoteEmbedder,
    RemoteEmbedderConfig,
    get_remote_embedder,
    parse_vector_literal,
    to_vector_literal,
)
from .llm import RemoteLLM, RemoteLLMConfig, LLMResponse

__all__ = [
    # Erros
    "ProviderError",
    "ProviderErrorKind",
    # Embedder
    "RemoteEmbedder",
    "RemoteEmbedderConfig",
    "get_remote_embedder",
    "parse_vector_literal",
    "to_vector_literal",
    # LLM
    "RemoteLLM",
    "RemoteLLMConfig",
    "LLMResponse",
]
