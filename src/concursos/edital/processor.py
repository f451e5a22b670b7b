"""
Processamento de editais (máquina de estados).

    QUEUED → PARSING → MAPPING → PLANNING → ACTIVE
                   ↘        ↘         ↘
                          ERROR

Checkpoints do job (progresso nunca diminui):

    15  Extraindo texto do PDF
    35  IA analisando o edital
    60  Cruzando com banco de conteúdo
    80  Gerando plano de estudos
    100 Concluído

Falha em qualquer estágio: edital → ERROR com mensagem, job → FAILED com
mensagem, traceback e data de conclusão. Nada é repetido automaticamente.
"""

import logging
import traceback
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from ..classification.discipline_classifier import match_discipline_name
from ..extraction.pdf_text_extractor import PdfTextExtractor
from ..registry.content_store import ContentStore
from ..registry.models import NoticeStatus
from ..registry.notice_registry import NoticeRegistry
from .extractor import NoticeExtractor
from .planner import build_study_plan

logger = logging.getLogger(__name__)


STAGE_EXTRACTING = ("Extraindo texto do PDF", 15)
STAGE_ANALYZING = ("IA analisando o edital", 35)
STAGE_MAPPING = ("Cruzando com banco de conteúdo", 60)
STAGE_PLANNING = ("Gerando plano de estudos", 80)
STAGE_DONE = ("Concluído", 100)


class NoticeProcessingError(RuntimeError):
    """Falha de estágio sem exceção de origem (ex.: PDF sem texto)."""


@dataclass
class NoticeJob:
    """Trabalho de processamento de um edital."""

    notice_id: str
    job_id: str
    owner_id: str
    document: bytes


class NoticeProcessor:
    """
    Executa o pipeline completo de um edital.

    Uso:
        processor = NoticeProcessor(registry, store, NoticeExtractor(llm))
        ok = processor.process(NoticeJob(notice_id, job_id, owner_id, pdf_bytes))
    """

    def __init__(
        self,
        registry: NoticeRegistry,
        content_store: ContentStore,
        notice_extractor: NoticeExtractor,
        text_extractor: Optional[PdfTextExtractor] = None,
        hours_per_day: int = 4,
        default_window_days: int = 90,
        min_text_chars: int = 50,
        today: Optional[Callable[[], date]] = None,
    ):
        self.registry = registry
        self.content_store = content_store
        self.notice_extractor = notice_extractor
        self.text_extractor = text_extractor or PdfTextExtractor()
        self.hours_per_day = hours_per_day
        self.default_window_days = default_window_days
        self.min_text_chars = min_text_chars
        self._today = today or date.today

    def _checkpoint(self, job: NoticeJob, stage: tuple[str, int]):
        label, progress = stage
        self.registry.update_job(job.job_id, label, progress)
        logger.info(f"Edital {job.notice_id}: {label} ({progress}%)")

    def process(self, job: NoticeJob) -> bool:
        """
        Processa o edital.

        Returns:
            True se o edital chegou a ACTIVE, False se falhou ou se outro
            worker já havia assumido o edital
        """
        if not self.registry.acquire_notice(job.notice_id):
            self.registry.reject_job(job.job_id)
            return False

        try:
            self._run(job)
        except Exception as e:
            logger.exception(f"Erro ao processar edital {job.notice_id}")
            message = str(e) or e.__class__.__name__
            self.registry.mark_failed(job.notice_id, job.job_id, message, traceback.format_exc())
            return False

        logger.info(f"Edital {job.notice_id} processado com sucesso")
        return True

    def _run(self, job: NoticeJob):
        # PARSING: texto
        self._checkpoint(job, STAGE_EXTRACTING)
        extraction = self.text_extractor.extract_bytes(job.document)
        self.registry.save_raw_text(job.notice_id, extraction.text)
        if not extraction.is_usable(self.min_text_chars):
            raise NoticeProcessingError("PDF sem texto extraível (possivelmente escaneado)")

        # PARSING: IA
        self._checkpoint(job, STAGE_ANALYZING)
        metadata = self.notice_extractor.extract(extraction.text)
        self.registry.advance(
            job.notice_id,
            NoticeStatus.MAPPING,
            banca=metadata.banca,
            orgao=metadata.orgao,
            cargo=metadata.cargo,
            notice_number=metadata.edital_numero,
            publication_date=metadata.data_publicacao,
            exam_date=metadata.data_prova,
            salary=metadata.salario,
            vacancies=metadata.vagas,
            total_questions=metadata.total_questoes,
            metadata_json=metadata.model_dump(mode="json", by_alias=True),
        )

        # MAPPING
        self._checkpoint(job, STAGE_MAPPING)
        slugs = self.content_store.discipline_slugs()
        items = []
        for disciplina in metadata.disciplinas:
            slug = match_discipline_name(disciplina.nome, slugs.keys())
            if slug is None:
                logger.info(f"Disciplina sem correspondência no banco: {disciplina.nome}")
            items.append(
                {
                    "name": disciplina.nome,
                    "weight": disciplina.peso or 0.0,
                    "question_count": disciplina.num_questoes,
                    "topics": disciplina.topicos,
                    "discipline_id": slugs.get(slug) if slug else None,
                }
            )
        self.registry.add_exam_disciplines(job.notice_id, items)
        self.registry.advance(job.notice_id, NoticeStatus.PLANNING)

        # PLANNING
        self._checkpoint(job, STAGE_PLANNING)
        draft = build_study_plan(
            metadata.disciplinas,
            metadata.data_prova,
            today=self._today(),
            hours_per_day=self.hours_per_day,
            default_window_days=self.default_window_days,
        )
        self.registry.save_study_plan(
            owner_id=job.owner_id,
            notice_id=job.notice_id,
            start_date=draft.start_date,
            end_date=draft.end_date,
            hours_per_day=draft.hours_per_day,
            weekdays=draft.weekdays,
            distribution=draft.distribution(),
            success_probability=draft.success_probability,
        )

        self.registry.advance(job.notice_id, NoticeStatus.ACTIVE)
        label, _ = STAGE_DONE
        self.registry.complete_job(job.job_id, label)
