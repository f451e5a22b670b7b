"""
Normalizador do texto extraído de PDFs de cursinho.

Duas etapas:

1. Regras (sempre disponível):
   - separa palavras coladas na transição minúscula → maiúscula
   - espaço após pontuação colada em palavra maiúscula
   - remove bloco de sumário/índice e linhas com pontilhado de página
   - remove a zona de capa/metadados do início (orçamento de caracteres)
   - remove rodapés repetidos ("3 de 164", "www.", licença)

2. IA (opcional): envia o início do texto bruto ao LLM com instruções de
   limpeza. Rate limit e cota esgotada caem para o resultado das regras;
   qualquer outro erro é propagado.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from ..remote.errors import ProviderError
from ..remote.llm import RemoteLLM
from .cleanup_prompts import CLEANUP_SYSTEM_PROMPT, build_cleanup_prompt

logger = logging.getLogger(__name__)

_LOWER = "a-záàâãéèêíïóôõöúüçñ"
_UPPER = "A-ZÁÀÂÃÉÈÊÍÏÓÔÕÖÚÜÇÑ"

_CASE_TRANSITION = re.compile(f"([{_LOWER}])([{_UPPER}])")
_GLUED_PUNCTUATION = re.compile(f"([.!?;:])([{_UPPER}])")
_MULTI_SPACE = re.compile(r" {2,}")

TOC_HEADING = re.compile(r"^(sum[aá]rio|[íi]ndice|conte[uú]do)\s*$", re.IGNORECASE)
LEADER_DOTS = re.compile(r"\.{3,}")
TOC_ENTRY = re.compile(r"\.{3,}\s*\d+\s*$")
NUMERIC_ONLY = re.compile(r"^\d+$")

COVER_MARKERS = re.compile(
    r"^(presidente|vice|diretor|coordenador|c[oó]digo|o conte[uú]do|www\.|todo o material"
    r"|ser[aá] proibid|isbn|©|copyright|gran cursos|editora|professor|autora?:|doutor|mestre"
    r"|especiali|bacharel|pela universidade|lattes\.cnpq)",
    re.IGNORECASE,
)

FOOTER_PATTERNS = [
    (re.compile(r"^\d{1,3}\s+de\s+\d{1,3}"), "page_counter"),
    (re.compile(r"^www\.", re.IGNORECASE), "url"),
    (re.compile(r"^o conte[uú]do deste (livro|material)", re.IGNORECASE), "licence"),
    (re.compile(r"^c[oó]digo:", re.IGNORECASE), "code"),
    (re.compile(r"^de \d{1,3}\s*www\.", re.IGNORECASE), "split_counter"),
]


@dataclass
class NormalizerConfig:
    """Limites do normalizador."""

    min_chars: int = 50
    max_chars: int = 6000
    ai_input_chars: int = 15000
    ai_max_tokens: int = 8096
    cover_budget: int = 2500
    cover_short_line: int = 60
    toc_short_line: int = 5


@dataclass
class CleanupReport:
    """Contagem de linhas removidas por regra."""

    original_length: int = 0
    cleaned_length: int = 0
    toc_lines: int = 0
    cover_lines: int = 0
    footer_lines: int = 0
    fell_back_to_raw: bool = False
    footers: dict = field(default_factory=dict)


@dataclass
class NormalizationResult:
    """Texto normalizado e como foi obtido."""

    text: str
    method: str  # "rules", "ai" ou "fallback"
    skipped: bool
    report: CleanupReport


def fix_spacing(text: str) -> str:
    """Espaço em transições de caixa e após pontuação colada; colapsa espaços."""
    text = _CASE_TRANSITION.sub(r"\1 \2", text)
    text = _GLUED_PUNCTUATION.sub(r"\1 \2", text)
    return _MULTI_SPACE.sub(" ", text).strip()


class TextNormalizer:
    """
    Limpa texto de PDF para indexação.

    Uso:
        normalizer = TextNormalizer()
        result = normalizer.normalize(raw_text)
        if not result.skipped:
            store(result.text)
    """

    def __init__(
        self,
        config: Optional[NormalizerConfig] = None,
        llm: Optional[RemoteLLM] = None,
    ):
        """
        Args:
            config: Limites (default: NormalizerConfig())
            llm: Cliente LLM; se None, só as regras são aplicadas
        """
        self.config = config or NormalizerConfig()
        self.llm = llm

    # =========================================================================
    # Regras
    # =========================================================================

    def strip_boilerplate(self, raw: str) -> tuple[str, CleanupReport]:
        """
        Remove sumário, capa e rodapés, linha a linha.

        Returns:
            Tuple (texto sem boilerplate, relatório)
        """
        cfg = self.config
        report = CleanupReport(original_length=len(raw))
        kept: list[str] = []

        in_toc = False
        cover_open = True
        cover_chars = 0

        for original in raw.split("\n"):
            line = original.strip()

            if TOC_HEADING.match(line):
                in_toc = True
                report.toc_lines += 1
                continue

            if in_toc:
                if LEADER_DOTS.search(line) or NUMERIC_ONLY.match(line) or len(line) < cfg.toc_short_line:
                    report.toc_lines += 1
                    continue
                in_toc = False

            if TOC_ENTRY.search(line):
                report.toc_lines += 1
                continue

            if cover_open and cover_chars < cfg.cover_budget:
                if len(line) < cfg.cover_short_line or COVER_MARKERS.match(line):
                    cover_chars += len(line) + 1
                    report.cover_lines += 1
                    continue
            cover_open = False

            footer = next((name for pattern, name in FOOTER_PATTERNS if pattern.match(line)), None)
            if footer:
                report.footer_lines += 1
                report.footers[footer] = report.footers.get(footer, 0) + 1
                continue

            kept.append(original.rstrip())

        cleaned = "\n".join(kept).strip()
        if not cleaned:
            report.fell_back_to_raw = True
            cleaned = raw.strip()
        report.cleaned_length = len(cleaned)
        return cleaned, report

    def apply_rules(self, raw: str) -> tuple[str, CleanupReport]:
        """Passo completo das regras, sem corte de tamanho."""
        cleaned, report = self.strip_boilerplate(raw)
        text = fix_spacing(cleaned)
        report.cleaned_length = len(text)
        return text, report

    # =========================================================================
    # IA
    # =========================================================================

    def _ai_cleanup(self, raw: str) -> str:
        prompt = build_cleanup_prompt(raw[: self.config.ai_input_chars])
        response = self.llm.chat(
            [
                {"role": "system", "content": CLEANUP_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.0,
            max_tokens=self.config.ai_max_tokens,
        )
        return response.content.strip()

    # =========================================================================
    # API pública
    # =========================================================================

    def normalize(self, raw: str) -> NormalizationResult:
        """
        Normaliza o texto bruto.

        Args:
            raw: Texto extraído do PDF

        Returns:
            NormalizationResult; skipped=True se o texto final ficar abaixo
            do mínimo

        Raises:
            ProviderError: Falha do LLM que não seja rate limit/cota
        """
        raw = raw or ""
        rules_text, report = self.apply_rules(raw)
        text = rules_text
        method = "rules"

        if self.llm is not None and raw.strip():
            try:
                text = self._ai_cleanup(raw)
                method = "ai"
            except ProviderError as e:
                if not e.is_fallback_eligible:
                    raise
                logger.warning(f"Limpeza por IA indisponível ({e.kind.value}), usando regras: {e.message}")
                text = rules_text or raw.strip()
                method = "fallback"

        text = text[: self.config.max_chars].strip()
        skipped = len(text) < self.config.min_chars
        return NormalizationResult(text=text, method=method, skipped=skipped, report=report)
