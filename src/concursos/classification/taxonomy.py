"""
Taxonomia de disciplinas do banco offline.

A tabela é ordenada: entradas mais específicas vêm antes das mais amplas
que se sobrepõem a elas (Contabilidade Pública antes de Contabilidade
Geral, que vem antes da palavra solta CONTABILIDADE). A primeira entrada
cujo termo aparece no segmento do caminho vence.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence


@dataclass(frozen=True)
class TaxonomyEntry:
    """Termos de busca (em maiúsculas) → disciplina."""

    keywords: tuple[str, ...]
    slug: str
    name: str


class Taxonomy:
    """Lista ordenada e imutável de entradas."""

    def __init__(self, entries: Sequence[TaxonomyEntry]):
        self._entries = tuple(entries)

    def __iter__(self) -> Iterator[TaxonomyEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[TaxonomyEntry, ...]:
        return self._entries

    def name_for(self, slug: str) -> Optional[str]:
        for entry in self._entries:
            if entry.slug == slug:
                return entry.name
        return None

    @property
    def slugs(self) -> list[str]:
        seen: list[str] = []
        for entry in self._entries:
            if entry.slug not in seen:
                seen.append(entry.slug)
        return seen


_DEFAULT_ENTRIES = [
    (("DIREITO ADMINISTRATIVO", "DIR ADMIN", "D. ADMINISTRATIVO"), "direito-administrativo", "Direito Administrativo"),
    (("DIREITO CONSTITUCIONAL", "DIR CONST", "D. CONSTITUCIONAL"), "direito-constitucional", "Direito Constitucional"),
    (
        ("DIREITO TRIBUTÁRIO", "DIREITO TRIBUTARIO", "DIR TRIB", "REFORMA TRIBUTÁRIA", "REFORMA TRIBUTARIA",
         "TRIBUTÁRIO", "TRIBUTARIO", "CBS", "IBS"),
        "direito-tributario",
        "Direito Tributário",
    ),
    (
        ("DIREITO PREVIDENCIÁRIO", "DIREITO PREVIDENCIARIO", "PREVIDÊNCIA", "PREVIDENCIA"),
        "direito-previdenciario",
        "Direito Previdenciário",
    ),
    (("DIREITO CIVIL",), "direito-civil", "Direito Civil"),
    (("DIREITO PENAL",), "direito-penal", "Direito Penal"),
    (("CONTABILIDADE PUBLICA", "CONTABILIDADE PÚBLICA", "CONTAB PUBL"), "contabilidade-publica", "Contabilidade Pública"),
    (
        ("CONTABILIDADE GERAL", "CONTABILIDADE INTRODUT", "CONTAB GERAL", "CONTABILIDADE ESQUEMATIZADA",
         "CONTABILIDADE PROF"),
        "contabilidade-geral",
        "Contabilidade Geral",
    ),
    (("CONTABILIDADE", "CONTAB"), "contabilidade-geral", "Contabilidade Geral"),
    (("AUDITORIA",), "auditoria", "Auditoria"),
    (("RACIOCÍNIO LÓGICO", "RACIOCINIO LOGICO", "RACIOC", "LÓGICO", "LOGICO"), "raciocinio-logico", "Raciocínio Lógico"),
    (("MATEMÁTICA FINANCEIRA", "MATEMATICA FINANCEIRA", "MAT FINANCEIRA"), "matematica-financeira", "Matemática Financeira"),
    (("ESTATÍSTICA", "ESTATISTICA"), "estatistica", "Estatística"),
    (
        ("ECONOMIA", "FINANÇAS PÚBLICAS", "FINANCAS PUBLICAS", "AFO", "FIN PUBL", "FINANCAS PUBL"),
        "economia-financas",
        "Economia e Finanças Públicas",
    ),
    (
        ("LEGISLAÇÃO TRIBUTÁRIA", "LEGISLACAO TRIBUTARIA", "LEGISL TRIBUTARIA", "LTE", "LEIS SEFA", "LEGISLAÇÃO"),
        "legislacao-tributaria",
        "Legislação Tributária",
    ),
    (
        ("TECNOLOGIA DA INFORMAÇÃO", "TECNOLOGIA DA INFORMACAO", "TI TOTAL", "TI_TOTAL", "INFORMATICA",
         "TECNOLOGIA", "FLUÊNCIA EM DADOS", "FLUENCIA EM DADOS"),
        "tecnologia-informacao",
        "Tecnologia da Informação",
    ),
    (
        ("ADMINISTRACAO PUBLICA", "ADMINISTRAÇÃO PÚBLICA", "ADMIN PUBLICA", "ADMIN PÚBLICA"),
        "administracao-publica",
        "Administração Pública",
    ),
    (("ADMINISTRACAO GERAL", "ADMINISTRAÇÃO GERAL", "ADMIN GERAL"), "administracao-geral", "Administração Geral"),
    (("PORTUGUÊS", "PORTUGUES", "LÍNGUA PORTUGUESA", "LINGUA PORTUGUESA"), "portugues", "Português"),
    (("INGLÊS", "INGLES"), "ingles", "Inglês"),
    (("INTELIGENCIA EMOCIONAL", "INTELIGÊNCIA EMOCIONAL"), "inteligencia-emocional", "Inteligência Emocional"),
    (("DISCURSIVAS", "DISCURSIVA", "REDAÇÃO", "REDACAO"), "redacao-discursivas", "Redação e Discursivas"),
    (
        ("QUEBRANDO", "QUESTOES INEDITAS", "QUESTÕES INÉDITAS", "PROVAS ANTERIORES", "SIMULADO"),
        "questoes-gerais",
        "Questões Gerais",
    ),
]


def default_taxonomy() -> Taxonomy:
    """Tabela padrão do banco da área fiscal."""
    return Taxonomy(
        TaxonomyEntry(keywords=keywords, slug=slug, name=name)
        for keywords, slug, name in _DEFAULT_ENTRIES
    )


# =============================================================================
# Área e cor
# =============================================================================

AREA_COLORS = {
    "juridica": "#5B8CFF",
    "contabil": "#22C55E",
    "ti": "#F59E0B",
    "fiscal": "#EF4444",
    "geral": "#94A3B8",
}

DEFAULT_COLOR = "#64748B"


def infer_area(slug: str) -> str:
    """Área de conhecimento a partir do slug."""
    if "direito" in slug:
        return "juridica"
    if "contabil" in slug:
        return "contabil"
    if "tecnologia" in slug or slug == "ti" or slug.startswith("ti-"):
        return "ti"
    if "tributar" in slug or "legisla" in slug or "economia" in slug or "fiscal" in slug:
        return "fiscal"
    return "geral"


def area_color(area: str) -> str:
    return AREA_COLORS.get(area, DEFAULT_COLOR)
