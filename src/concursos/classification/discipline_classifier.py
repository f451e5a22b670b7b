"""
Classificação de disciplinas.

Dois modos, ambos funções puras:

- classify_path: caminho de arquivo do banco offline → entrada da taxonomia.
  Segmentos são varridos do mais interno (nome do arquivo) para o mais
  externo; a pasta mais próxima do arquivo vence.
- match_discipline_name: nome livre vindo de um edital → slug existente.
"""

import re
import unicodedata
from typing import Iterable, Optional

from .taxonomy import Taxonomy, TaxonomyEntry, default_taxonomy

_SEPARATORS = re.compile(r"[\\/]+")
_WORD = re.compile(r"[a-z0-9]+")

# Tamanho máximo do candidato montado a partir do nome
CANDIDATE_MAX_CHARS = 20
# Palavras com até este tamanho não contam no fallback por palavras
MIN_WORD_CHARS = 4


def path_segments(path: str) -> list[str]:
    """Segmentos do caminho em NFC e maiúsculas (nome do arquivo incluído)."""
    normalized = unicodedata.normalize("NFC", str(path)).upper()
    return [segment for segment in _SEPARATORS.split(normalized) if segment]


def classify_path(path: str, taxonomy: Optional[Taxonomy] = None) -> Optional[TaxonomyEntry]:
    """
    Classifica um arquivo pela estrutura de pastas.

    Args:
        path: Caminho do arquivo
        taxonomy: Tabela ordenada (default: default_taxonomy())

    Returns:
        Entrada vencedora ou None (arquivo sem disciplina)
    """
    if taxonomy is None:
        taxonomy = default_taxonomy()
    for segment in reversed(path_segments(path)):
        for entry in taxonomy:
            if any(keyword in segment for keyword in entry.keywords):
                return entry
    return None


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _word_hits(words: list[str], slug: str) -> int:
    tokens = [token for token in slug.split("-") if len(token) > MIN_WORD_CHARS]
    hits = 0
    for word in words:
        if word in slug or any(word.startswith(token) for token in tokens):
            hits += 1
    return hits


def match_discipline_name(name: str, slugs: Iterable[str]) -> Optional[str]:
    """
    Associa o nome de uma disciplina do edital a um slug existente.

    Ordem de tentativa:
        1. slug idêntico ao nome normalizado ("Direito Tributário" → direito-tributario)
        2. slug que contém o candidato (primeiros 20 caracteres)
        3. slug com mais palavras significativas (> 4 letras) em comum;
           empate resolvido pela ordem alfabética

    Args:
        name: Nome livre da disciplina
        slugs: Snapshot dos slugs existentes

    Returns:
        Slug encontrado ou None
    """
    ordered = sorted(set(slugs))
    words = _WORD.findall(strip_accents(name.lower()))
    if not words or not ordered:
        return None

    full = "-".join(words)
    if full in ordered:
        return full

    candidate = full[:CANDIDATE_MAX_CHARS].rstrip("-")
    for slug in ordered:
        if slug.startswith(candidate):
            return slug
    for slug in ordered:
        if candidate in slug:
            return slug

    significant = [word for word in words if len(word) > MIN_WORD_CHARS]
    best: Optional[str] = None
    best_hits = 0
    for slug in ordered:
        hits = _word_hits(significant, slug)
        if hits > best_hits:
            best, best_hits = slug, hits
    return best
