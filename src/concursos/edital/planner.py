"""
Gerador de plano de estudos.

Função pura: disciplinas do edital + data da prova + hoje → plano.

    dias        = max(1, dias inteiros entre hoje e a prova)   (sem data: 90)
    horas       = dias × horas_por_dia
    peso_i      = peso normalizado (soma 1)
    horas_i     = maior resto sobre horas × peso_i  (Σ horas_i == horas)
    ciclos      = max(1, dias // 30)
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional, Sequence

from .models import NoticeDisciplineData

logger = logging.getLogger(__name__)

DEFAULT_WEEKDAYS = (1, 2, 3, 4, 5)  # segunda a sexta
BASELINE_SUCCESS_PROBABILITY = 0.5
CYCLE_DAYS = 30


@dataclass
class DisciplineAllocation:
    """Fatia do plano destinada a uma disciplina."""

    name: str
    percentual: float
    hours: int
    cycles: int


@dataclass
class StudyPlanDraft:
    """Plano calculado, ainda não persistido."""

    start_date: date
    end_date: date
    total_days: int
    hours_per_day: int
    total_hours: int
    weekdays: list[int] = field(default_factory=lambda: list(DEFAULT_WEEKDAYS))
    success_probability: float = BASELINE_SUCCESS_PROBABILITY
    allocations: list[DisciplineAllocation] = field(default_factory=list)

    def distribution(self) -> dict:
        """Formato persistido: nome → {percentual, horas_total, ciclos}."""
        result = {}
        for allocation in self.allocations:
            key = allocation.name
            suffix = 2
            while key in result:
                key = f"{allocation.name} ({suffix})"
                suffix += 1
            result[key] = {
                "percentual": round(allocation.percentual, 4),
                "horas_total": allocation.hours,
                "ciclos": allocation.cycles,
            }
        return result


def normalize_weights(disciplines: Sequence[NoticeDisciplineData]) -> list[float]:
    """
    Pesos que somam 1.

    Usa o peso informado; se nenhum for positivo, a proporção de questões;
    sem questões, divide igualmente.
    """
    if not disciplines:
        return []

    weights = [max(d.peso or 0.0, 0.0) for d in disciplines]
    total = sum(weights)
    if total > 0:
        return [w / total for w in weights]

    counts = [max(d.num_questoes, 0) for d in disciplines]
    total_counts = sum(counts)
    if total_counts > 0:
        return [c / total_counts for c in counts]

    return [1.0 / len(disciplines)] * len(disciplines)


def allocate_hours(total_hours: int, weights: Sequence[float]) -> list[int]:
    """
    Distribui horas inteiras pelo método do maior resto.

    A soma do resultado é exatamente total_hours (com pesos não vazios).
    """
    if not weights:
        return []
    exact = [total_hours * w for w in weights]
    hours = [int(value) for value in exact]
    remaining = max(0, total_hours - sum(hours))
    # Maiores restos primeiro; empate fica com a disciplina listada antes
    order = sorted(range(len(weights)), key=lambda i: (-(exact[i] - hours[i]), i))
    for i in order[:remaining]:
        hours[i] += 1
    return hours


def build_study_plan(
    disciplines: Sequence[NoticeDisciplineData],
    exam_date: Optional[date],
    today: Optional[date] = None,
    hours_per_day: int = 4,
    default_window_days: int = 90,
) -> StudyPlanDraft:
    """
    Monta o plano de estudos.

    Prova hoje ou no passado não gera plano de 1 dia: a data é descartada e
    vale a janela padrão, como quando o edital não informa a data.

    Args:
        disciplines: Disciplinas do edital
        exam_date: Data da prova (None ou já passada → janela padrão)
        today: Data de início (default: hoje)
        hours_per_day: Horas de estudo por dia
        default_window_days: Janela usada sem data de prova

    Returns:
        StudyPlanDraft
    """
    start = today or date.today()

    if exam_date is not None and exam_date <= start:
        logger.warning(f"Data da prova {exam_date} não é futura; usando janela de {default_window_days} dias")
        exam_date = None
    end = exam_date or start + timedelta(days=default_window_days)

    total_days = max(1, (end - start).days)
    total_hours = total_days * hours_per_day
    cycles = max(1, total_days // CYCLE_DAYS)

    weights = normalize_weights(disciplines)
    hours = allocate_hours(total_hours, weights)

    allocations = [
        DisciplineAllocation(name=d.nome, percentual=w, hours=h, cycles=cycles)
        for d, w, h in zip(disciplines, weights, hours)
    ]

    return StudyPlanDraft(
        start_date=start,
        end_date=end,
        total_days=total_days,
        hours_per_day=hours_per_day,
        total_hours=total_hours,
        allocations=allocations,
    )
