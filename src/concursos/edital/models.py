"""
Modelos Pydantic dos dados extraídos de um edital.

Aceitam as chaves camelCase devolvidas pelo LLM (editalNumero,
dataProva, numQuestoes...) e toleram os desvios mais comuns: peso em
porcentagem, números como texto, datas inválidas.
"""

import re
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_NUMBER = re.compile(r"-?\d+(?:[.,]\d+)*")


def _parse_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
        try:
            return datetime.strptime(text[:10], fmt).date()
        except ValueError:
            continue
    return None


def _parse_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMBER.search(str(value))
    if not match:
        return None
    raw = match.group(0)
    # Formato brasileiro: 5.000,00
    if "," in raw:
        raw = raw.replace(".", "").replace(",", ".")
    elif raw.count(".") > 1:
        raw = raw.replace(".", "")
    try:
        return float(raw)
    except ValueError:
        return None


class NoticeDisciplineData(BaseModel):
    """Disciplina listada no edital."""

    model_config = ConfigDict(populate_by_name=True)

    nome: str
    peso: Optional[float] = None
    num_questoes: int = Field(default=0, alias="numQuestoes")
    topicos: list[str] = Field(default_factory=list)

    @field_validator("nome")
    @classmethod
    def _nome_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("nome da disciplina vazio")
        return value

    @field_validator("peso", mode="before")
    @classmethod
    def _peso_fraction(cls, value: Any) -> Optional[float]:
        number = _parse_number(value)
        if number is None:
            return None
        if number > 1:
            number = number / 100  # veio em porcentagem
        return max(0.0, min(number, 1.0))

    @field_validator("num_questoes", mode="before")
    @classmethod
    def _num_questoes_int(cls, value: Any) -> int:
        number = _parse_number(value)
        return max(0, int(number)) if number is not None else 0

    @field_validator("topicos", mode="before")
    @classmethod
    def _topicos_list(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value.strip()] if value.strip() else []
        return [str(item).strip() for item in value if str(item).strip()]


class NoticeMetadata(BaseModel):
    """Metadados estruturados de um edital."""

    model_config = ConfigDict(populate_by_name=True)

    banca: Optional[str] = None
    orgao: Optional[str] = None
    cargo: Optional[str] = None
    edital_numero: Optional[str] = Field(default=None, alias="editalNumero")
    data_publicacao: Optional[date] = Field(default=None, alias="dataPublicacao")
    data_prova: Optional[date] = Field(default=None, alias="dataProva")
    salario: Optional[float] = None
    vagas: Optional[int] = None
    total_questoes: Optional[int] = Field(default=None, alias="totalQuestoes")
    disciplinas: list[NoticeDisciplineData] = Field(default_factory=list)

    @field_validator("banca", "orgao", "cargo", "edital_numero", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("data_publicacao", "data_prova", mode="before")
    @classmethod
    def _dates(cls, value: Any) -> Optional[date]:
        return _parse_date(value)

    @field_validator("salario", mode="before")
    @classmethod
    def _salario(cls, value: Any) -> Optional[float]:
        return _parse_number(value)

    @field_validator("vagas", "total_questoes", mode="before")
    @classmethod
    def _optional_int(cls, value: Any) -> Optional[int]:
        number = _parse_number(value)
        return int(number) if number is not None else None

    @field_validator("disciplinas", mode="before")
    @classmethod
    def _disciplinas_list(cls, value: Any) -> list:
        return value or []

    @model_validator(mode="after")
    def _fill_weights(self) -> "NoticeMetadata":
        """Peso ausente = numQuestoes / totalQuestoes."""
        total = self.total_questoes or sum(d.num_questoes for d in self.disciplinas)
        if total:
            for disciplina in self.disciplinas:
                if disciplina.peso is None and disciplina.num_questoes:
                    disciplina.peso = disciplina.num_questoes / total
        return self
