"""
Serviço de editais: upload, status do processamento, listagem, plano ativo,
busca de conteúdo e status do indexador.
"""

import hashlib
import logging
import time
import traceback
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..registry.content_store import ContentStore, SimilarContent
from ..registry.models import ContentKind, NoticeStatus
from ..registry.notice_registry import NoticeRegistry
from ..remote.embedder import RemoteEmbedder
from .dispatch import JobDispatcher, JobHandle
from .processor import NoticeJob

logger = logging.getLogger(__name__)


class DuplicateNoticeError(Exception):
    """Mesmo arquivo já ativo para o usuário."""

    def __init__(self, notice_id: str):
        super().__init__(f"Edital já enviado e ativo: {notice_id}")
        self.notice_id = notice_id


class NoticeDispatchError(RuntimeError):
    """Edital registrado, mas o job não pôde ser enfileirado."""

    def __init__(self, notice_id: str, message: str):
        super().__init__(message)
        self.notice_id = notice_id


# ============================================================================
# VIEWS
# ============================================================================

class NoticeDisciplineView(BaseModel):
    id: str
    nome: str
    peso: float
    num_questoes: int
    discipline_id: Optional[str] = None


class NoticeDetailsView(BaseModel):
    id: str
    banca: Optional[str] = None
    orgao: Optional[str] = None
    cargo: Optional[str] = None
    data_prova: Optional[date] = None
    total_questoes: Optional[int] = None
    disciplinas: list[NoticeDisciplineView] = Field(default_factory=list)


class NoticeStatusView(BaseModel):
    """Status do edital + progresso do job mais recente."""

    notice_id: str
    status: str
    error_message: Optional[str] = None
    progress: int = 0
    stage: Optional[str] = None
    job_status: Optional[str] = None
    notice: Optional[NoticeDetailsView] = None  # só quando ACTIVE


class NoticeSummaryView(BaseModel):
    """Linha da listagem de editais do usuário."""

    id: str
    file_name: str
    status: str
    banca: Optional[str] = None
    orgao: Optional[str] = None
    cargo: Optional[str] = None
    data_prova: Optional[date] = None
    created_at: Optional[datetime] = None


class StudyPlanView(BaseModel):
    id: str
    notice_id: str
    start_date: date
    end_date: date
    hours_per_day: int
    weekdays: list[int]
    distribution: dict
    success_probability: float


class ContentItemView(BaseModel):
    id: str
    title: str
    kind: str
    discipline_id: Optional[str] = None
    source_key: str


@dataclass
class SubmitResult:
    notice_id: str
    job_id: str
    status: str
    handle: JobHandle


def content_hash(data: bytes) -> str:
    """md5 do arquivo (chave de deduplicação de upload)."""
    return hashlib.md5(data).hexdigest()


class NoticeService:
    """Fachada usada pela API."""

    def __init__(
        self,
        registry: NoticeRegistry,
        content_store: ContentStore,
        dispatcher: JobDispatcher,
        embedder: Optional[RemoteEmbedder] = None,
        search_limit: int = 10,
        min_similarity: float = 0.7,
        indexer_target: int = 2620,
    ):
        self.registry = registry
        self.content_store = content_store
        self.dispatcher = dispatcher
        self.embedder = embedder
        self.search_limit = search_limit
        self.min_similarity = min_similarity
        self.indexer_target = indexer_target

    def submit(self, owner_id: str, file_name: str, data: bytes) -> SubmitResult:
        """
        Registra o edital e enfileira o processamento.

        Args:
            owner_id: Usuário dono do edital
            file_name: Nome original do arquivo
            data: Conteúdo do PDF

        Returns:
            SubmitResult com IDs do edital e do job

        Raises:
            DuplicateNoticeError: Mesmo conteúdo já ACTIVE para o usuário
            NoticeDispatchError: Falha ao enfileirar (edital e job ficam em ERROR/FAILED)
        """
        digest = content_hash(data)
        existing = self.registry.find_active_by_hash(owner_id, digest)
        if existing is not None:
            raise DuplicateNoticeError(existing.id)

        storage_key = f"editais/{owner_id}/{int(time.time() * 1000)}-{file_name}"
        notice = self.registry.create_notice(
            owner_id=owner_id,
            file_name=file_name,
            size_bytes=len(data),
            storage_key=storage_key,
            content_hash=digest,
        )
        job = self.registry.create_job(notice.id)
        logger.info(f"Edital {notice.id} recebido ({file_name}, {len(data)} bytes), job {job.id}")

        try:
            handle = self.dispatcher.enqueue(
                NoticeJob(notice_id=notice.id, job_id=job.id, owner_id=owner_id, document=data)
            )
        except Exception as e:
            message = f"Falha ao enfileirar processamento: {str(e) or e.__class__.__name__}"
            self.registry.mark_failed(notice.id, job.id, message, traceback.format_exc())
            raise NoticeDispatchError(notice.id, message) from e
        return SubmitResult(
            notice_id=notice.id,
            job_id=job.id,
            status=NoticeStatus.QUEUED.value,
            handle=handle,
        )

    def get_status(self, notice_id: str) -> Optional[NoticeStatusView]:
        """Status do edital; detalhes só depois de ACTIVE. None se não existir."""
        notice = self.registry.get_notice(notice_id)
        if notice is None:
            return None

        job = self.registry.get_latest_job(notice_id)
        view = NoticeStatusView(
            notice_id=notice.id,
            status=notice.status,
            error_message=notice.error_message,
            progress=job.progress if job else 0,
            stage=job.stage if job else None,
            job_status=job.status if job else None,
        )

        if notice.status == NoticeStatus.ACTIVE.value:
            view.notice = NoticeDetailsView(
                id=notice.id,
                banca=notice.banca,
                orgao=notice.orgao,
                cargo=notice.cargo,
                data_prova=notice.exam_date,
                total_questoes=notice.total_questions,
                disciplinas=[
                    NoticeDisciplineView(
                        id=d.id,
                        nome=d.name,
                        peso=d.weight,
                        num_questoes=d.question_count,
                        discipline_id=d.discipline_id,
                    )
                    for d in self.registry.list_exam_disciplines(notice_id)
                ],
            )
        return view

    def search_content(self, query: str) -> list[SimilarContent]:
        """Busca semântica no banco; mantém apenas similaridade acima do limiar."""
        if self.embedder is None:
            raise RuntimeError("Busca semântica requer embedder configurado")
        vector = self.embedder.embed(query)
        results = self.content_store.search_similar(vector, limit=self.search_limit)
        return [r for r in results if r.similarity > self.min_similarity]

    def indexer_status(self) -> dict:
        """Total indexado, meta e quebra por disciplina."""
        total = self.content_store.count()
        return {
            "total": total,
            "target": self.indexer_target,
            "percent": round(100 * total / self.indexer_target, 1) if self.indexer_target else None,
            "by_discipline": self.content_store.count_by_discipline(),
        }

    def list_notices(self, owner_id: str) -> list[NoticeSummaryView]:
        """Editais do usuário, mais recentes primeiro."""
        return [
            NoticeSummaryView(
                id=n.id,
                file_name=n.file_name,
                status=n.status,
                banca=n.banca,
                orgao=n.orgao,
                cargo=n.cargo,
                data_prova=n.exam_date,
                created_at=n.created_at,
            )
            for n in self.registry.list_notices(owner_id)
        ]

    def get_active_plan(self, notice_id: str) -> Optional[StudyPlanView]:
        plan = self.registry.get_active_plan(notice_id)
        if plan is None:
            return None
        return StudyPlanView(
            id=plan.id,
            notice_id=plan.notice_id,
            start_date=plan.start_date,
            end_date=plan.end_date,
            hours_per_day=plan.hours_per_day,
            weekdays=list(plan.weekdays or []),
            distribution=dict(plan.distribution or {}),
            success_probability=plan.success_probability,
        )

    def list_contents(self, slug: str, kind: Optional[ContentKind] = None) -> list[ContentItemView]:
        """Materiais indexados de uma disciplina (filtro opcional por tipo)."""
        return [
            ContentItemView(
                id=c.id,
                title=c.title,
                kind=c.kind,
                discipline_id=c.discipline_id,
                source_key=c.source_key,
            )
            for c in self.content_store.list_by_discipline(slug, kind)
        ]
