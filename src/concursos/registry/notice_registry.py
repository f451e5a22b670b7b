"""
Serviço de registro de editais, jobs de processamento e planos de estudo.

O status do edital só avança pelas transições válidas:

    QUEUED → PARSING → MAPPING → PLANNING → ACTIVE
    (qualquer estágio não terminal) → ERROR

Cada transição é um UPDATE condicional no status atual, o que também
serve de lease: só um worker consegue tirar um edital de QUEUED.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .database import create_db_engine, create_session_factory
from .models import (
    ExamDiscipline,
    ExamNotice,
    JobStatus,
    NoticeStatus,
    ProcessingJob,
    StudyPlan,
)

logger = logging.getLogger(__name__)


# Estados de origem aceitos por cada estado de destino
ALLOWED_TRANSITIONS = {
    NoticeStatus.PARSING: (NoticeStatus.QUEUED,),
    NoticeStatus.MAPPING: (NoticeStatus.PARSING,),
    NoticeStatus.PLANNING: (NoticeStatus.MAPPING,),
    NoticeStatus.ACTIVE: (NoticeStatus.PLANNING,),
    NoticeStatus.ERROR: (
        NoticeStatus.QUEUED,
        NoticeStatus.PARSING,
        NoticeStatus.MAPPING,
        NoticeStatus.PLANNING,
    ),
}

_TERMINAL_JOB = (JobStatus.DONE.value, JobStatus.FAILED.value)

# Job recusado pelo lease (outro job já assumiu o edital)
REJECTED_STAGE = "Recusado: edital já processado ou em processamento"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InvalidTransitionError(RuntimeError):
    """Transição de status não permitida a partir do estado atual."""


class NoticeRegistry:
    """Acesso a editais, disciplinas do edital, jobs e planos."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        echo: bool = False,
        engine: Optional[Engine] = None,
    ):
        """
        Args:
            database_url: URL de conexão (default: env DATABASE_URL)
            echo: Se True, loga queries SQL
            engine: Engine já criado (compartilhado com o ContentStore)
        """
        self._engine = engine or create_db_engine(database_url, echo=echo)
        self._session_factory = create_session_factory(self._engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    def _get_session(self) -> Session:
        """Cria uma nova sessão."""
        return self._session_factory()

    # =========================================================================
    # Editais
    # =========================================================================

    def create_notice(
        self,
        owner_id: str,
        file_name: str,
        size_bytes: int,
        storage_key: str,
        content_hash: str,
    ) -> ExamNotice:
        """Cria o edital em QUEUED."""
        with self._get_session() as session:
            notice = ExamNotice(
                owner_id=owner_id,
                file_name=file_name,
                size_bytes=size_bytes,
                storage_key=storage_key,
                content_hash=content_hash,
                status=NoticeStatus.QUEUED.value,
            )
            session.add(notice)
            session.commit()
            return notice

    def get_notice(self, notice_id: str) -> Optional[ExamNotice]:
        with self._get_session() as session:
            return session.get(ExamNotice, notice_id)

    def find_active_by_hash(self, owner_id: str, content_hash: str) -> Optional[ExamNotice]:
        """Edital ACTIVE do mesmo usuário com o mesmo conteúdo (dedup de upload)."""
        with self._get_session() as session:
            return (
                session.query(ExamNotice)
                .filter(
                    ExamNotice.owner_id == owner_id,
                    ExamNotice.content_hash == content_hash,
                    ExamNotice.status == NoticeStatus.ACTIVE.value,
                )
                .first()
            )

    def list_notices(self, owner_id: str) -> list[ExamNotice]:
        with self._get_session() as session:
            return (
                session.query(ExamNotice)
                .filter(ExamNotice.owner_id == owner_id)
                .order_by(ExamNotice.created_at.desc())
                .all()
            )

    def transition(self, notice_id: str, status: NoticeStatus, **fields) -> bool:
        """
        Move o edital para `status` se o estado atual permitir.

        Args:
            notice_id: ID do edital
            status: Estado de destino
            **fields: Colunas adicionais a gravar na mesma operação

        Returns:
            True se a transição ocorreu, False se o estado atual não permite
        """
        allowed = [s.value for s in ALLOWED_TRANSITIONS[status]]
        values = {"status": status.value, "updated_at": _utcnow(), **fields}
        with self._get_session() as session:
            result = session.execute(
                update(ExamNotice)
                .where(ExamNotice.id == notice_id, ExamNotice.status.in_(allowed))
                .values(**values)
            )
            session.commit()
        return result.rowcount == 1

    def acquire_notice(self, notice_id: str) -> bool:
        """Lease do edital: QUEUED → PARSING. Apenas um worker vence."""
        acquired = self.transition(notice_id, NoticeStatus.PARSING)
        if not acquired:
            logger.warning(f"Edital {notice_id} não está em QUEUED; processamento ignorado")
        return acquired

    def advance(self, notice_id: str, status: NoticeStatus, **fields):
        """Como transition(), mas falha alta se o estado atual não permitir."""
        if not self.transition(notice_id, status, **fields):
            raise InvalidTransitionError(f"Edital {notice_id}: transição para {status.value} não permitida")

    def save_raw_text(self, notice_id: str, raw_text: str):
        with self._get_session() as session:
            session.execute(
                update(ExamNotice)
                .where(ExamNotice.id == notice_id)
                .values(raw_text=raw_text, updated_at=_utcnow())
            )
            session.commit()

    # =========================================================================
    # Disciplinas do edital
    # =========================================================================

    def add_exam_disciplines(self, notice_id: str, items: list[dict]) -> list[ExamDiscipline]:
        """
        Registra as disciplinas do edital.

        Args:
            notice_id: ID do edital
            items: Dicts com name, weight, question_count, topics, discipline_id
        """
        with self._get_session() as session:
            rows = [ExamDiscipline(notice_id=notice_id, **item) for item in items]
            session.add_all(rows)
            session.commit()
            return rows

    def list_exam_disciplines(self, notice_id: str) -> list[ExamDiscipline]:
        with self._get_session() as session:
            return (
                session.query(ExamDiscipline)
                .filter(ExamDiscipline.notice_id == notice_id)
                .order_by(ExamDiscipline.weight.desc(), ExamDiscipline.name)
                .all()
            )

    # =========================================================================
    # Jobs
    # =========================================================================

    def create_job(self, notice_id: str) -> ProcessingJob:
        with self._get_session() as session:
            job = ProcessingJob(
                notice_id=notice_id,
                stage="Na fila",
                progress=0,
                status=JobStatus.QUEUED.value,
            )
            session.add(job)
            session.commit()
            return job

    def get_job(self, job_id: str) -> Optional[ProcessingJob]:
        with self._get_session() as session:
            return session.get(ProcessingJob, job_id)

    def get_latest_job(self, notice_id: str) -> Optional[ProcessingJob]:
        """Job mais recente do edital; jobs recusados pelo lease só se não houver outro."""
        with self._get_session() as session:
            jobs = (
                session.query(ProcessingJob)
                .filter(ProcessingJob.notice_id == notice_id)
                .order_by(ProcessingJob.created_at.desc())
                .all()
            )
        for job in jobs:
            if job.stage != REJECTED_STAGE:
                return job
        return jobs[0] if jobs else None

    def update_job(self, job_id: str, stage: str, progress: int) -> Optional[ProcessingJob]:
        """
        Avança o job. O progresso nunca diminui e jobs terminais não mudam.

        Returns:
            Job atualizado, ou None se não existir
        """
        with self._get_session() as session:
            job = session.get(ProcessingJob, job_id)
            if job is None:
                return None
            if job.status in _TERMINAL_JOB:
                logger.warning(f"Job {job_id} já finalizado ({job.status}); atualização ignorada")
                return job
            job.stage = stage
            job.progress = max(job.progress or 0, min(int(progress), 100))
            job.status = JobStatus.PROCESSING.value
            job.updated_at = _utcnow()
            session.commit()
            return job

    def complete_job(self, job_id: str, stage: str = "Concluído"):
        with self._get_session() as session:
            job = session.get(ProcessingJob, job_id)
            if job is None:
                return
            job.stage = stage
            job.progress = 100
            job.status = JobStatus.DONE.value
            job.completed_at = _utcnow()
            session.commit()

    def fail_job(self, job_id: str, message: str, trace: Optional[str] = None):
        with self._get_session() as session:
            job = session.get(ProcessingJob, job_id)
            if job is None:
                return
            job.status = JobStatus.FAILED.value
            job.error_message = message
            job.error_trace = trace
            job.completed_at = _utcnow()
            session.commit()

    def reject_job(self, job_id: str):
        """Finaliza um job que perdeu o lease, sem tocar no edital."""
        with self._get_session() as session:
            job = session.get(ProcessingJob, job_id)
            if job is None:
                return
            job.stage = REJECTED_STAGE
            job.status = JobStatus.FAILED.value
            job.error_message = REJECTED_STAGE
            job.completed_at = _utcnow()
            session.commit()

    def mark_failed(self, notice_id: str, job_id: str, message: str, trace: Optional[str] = None):
        """Edital → ERROR e job → FAILED, com mensagem."""
        self.transition(notice_id, NoticeStatus.ERROR, error_message=message)
        self.fail_job(job_id, message, trace)
        logger.error(f"Edital {notice_id} falhou: {message}")

    # =========================================================================
    # Planos
    # =========================================================================

    def save_study_plan(
        self,
        owner_id: str,
        notice_id: str,
        start_date: date,
        end_date: date,
        hours_per_day: int,
        weekdays: list[int],
        distribution: dict,
        success_probability: float,
    ) -> StudyPlan:
        """Grava o plano como ativo e desativa planos anteriores do mesmo edital."""
        with self._get_session() as session:
            session.execute(
                update(StudyPlan)
                .where(StudyPlan.notice_id == notice_id, StudyPlan.active.is_(True))
                .values(active=False)
            )
            plan = StudyPlan(
                owner_id=owner_id,
                notice_id=notice_id,
                start_date=start_date,
                end_date=end_date,
                hours_per_day=hours_per_day,
                weekdays=list(weekdays),
                distribution=distribution,
                success_probability=success_probability,
                active=True,
            )
            session.add(plan)
            session.commit()
            return plan

    def get_active_plan(self, notice_id: str) -> Optional[StudyPlan]:
        with self._get_session() as session:
            return (
                session.query(StudyPlan)
                .filter(StudyPlan.notice_id == notice_id, StudyPlan.active.is_(True))
                .order_by(StudyPlan.created_at.desc())
                .first()
            )
