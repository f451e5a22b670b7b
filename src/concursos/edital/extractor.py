"""
Extração estruturada de editais via LLM.

O texto do edital vai truncado ao LLM com o schema esperado; da resposta
é recortado o maior bloco {...}, decodificado e validado. Qualquer falha
nesse caminho é definitiva para o edital (sem retry).
"""

import json
import logging
import re

from pydantic import ValidationError

from ..remote.llm import RemoteLLM
from .models import NoticeMetadata
from .prompts import NOTICE_SYSTEM_PROMPT, build_notice_prompt

logger = logging.getLogger(__name__)

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


class NoticeExtractionError(RuntimeError):
    """Resposta do LLM sem JSON válido para o schema do edital."""


def parse_notice_json(content: str) -> NoticeMetadata:
    """
    Converte a resposta do LLM em NoticeMetadata.

    Raises:
        NoticeExtractionError: Sem bloco JSON, JSON inválido ou fora do schema
    """
    match = _JSON_BLOCK.search(content or "")
    if not match:
        raise NoticeExtractionError("IA não retornou JSON válido")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise NoticeExtractionError(f"IA retornou JSON malformado: {e}") from e

    if not isinstance(data, dict):
        raise NoticeExtractionError("IA retornou JSON fora do schema do edital")

    try:
        return NoticeMetadata.model_validate(data)
    except ValidationError as e:
        raise NoticeExtractionError(f"JSON do edital fora do schema: {e.error_count()} erro(s)") from e


class NoticeExtractor:
    """Extrai metadados e disciplinas de um edital."""

    def __init__(
        self,
        llm: RemoteLLM,
        max_input_chars: int = 80000,
        max_tokens: int = 4096,
    ):
        self.llm = llm
        self.max_input_chars = max_input_chars
        self.max_tokens = max_tokens

    def extract(self, raw_text: str) -> NoticeMetadata:
        """
        Args:
            raw_text: Texto completo do edital

        Returns:
            NoticeMetadata validado

        Raises:
            NoticeExtractionError: Resposta sem JSON válido
            ProviderError: Falha do provedor LLM
        """
        prompt = build_notice_prompt(raw_text[: self.max_input_chars])
        response = self.llm.chat(
            [
                {"role": "system", "content": NOTICE_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.0,
            max_tokens=self.max_tokens,
        )

        metadata = parse_notice_json(response.content)
        logger.info(
            f"Edital extraído: banca={metadata.banca}, cargo={metadata.cargo}, "
            f"{len(metadata.disciplinas)} disciplinas"
        )
        if not metadata.disciplinas:
            logger.warning("Edital sem disciplinas identificadas")
        return metadata
