"""
Modelos SQLAlchemy do banco de conteúdo e dos editais.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

from .vector import EmbeddingColumn

Base = declarative_base()

EMBEDDING_DIMENSIONS = 1536


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


class ContentKind(str, Enum):
    """Tipo do material indexado."""

    RESUMO = "RESUMO"
    QUESTAO = "QUESTAO"
    MAPA_MENTAL = "MAPA_MENTAL"


class NoticeStatus(str, Enum):
    """Status do edital no pipeline de processamento."""

    QUEUED = "QUEUED"  # upload recebido, aguardando worker
    PARSING = "PARSING"  # extraindo texto + IA
    MAPPING = "MAPPING"  # cruzando disciplinas com o banco
    PLANNING = "PLANNING"  # gerando plano de estudos
    ACTIVE = "ACTIVE"  # concluído
    ERROR = "ERROR"  # falha em alguma etapa


class JobStatus(str, Enum):
    """Status do job de processamento."""

    QUEUED = "QUEUED"
    PROCESSING = "PROCESSING"
    DONE = "DONE"
    FAILED = "FAILED"


class Discipline(Base):
    """Disciplina do banco de conteúdo (chave natural: slug)."""

    __tablename__ = "disciplines"

    id = Column(String(36), primary_key=True, default=_uuid)
    slug = Column(String(100), nullable=False)
    name = Column(String(200), nullable=False)
    area = Column(String(50), nullable=False, default="geral")
    color = Column(String(20), nullable=False, default="#64748B")
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (UniqueConstraint("slug", name="uq_discipline_slug"),)

    def __repr__(self) -> str:
        return f"<Discipline(slug={self.slug}, name={self.name}, area={self.area})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "area": self.area,
            "color": self.color,
            "created_at": _iso(self.created_at),
        }


class IndexedContent(Base):
    """
    Material indexado a partir de um PDF do banco offline.

    source_key (caminho absoluto do arquivo) é a chave de idempotência:
    no máximo um registro por arquivo. O registro não é alterado depois de
    criado.
    """

    __tablename__ = "indexed_contents"

    id = Column(String(36), primary_key=True, default=_uuid)
    discipline_id = Column(String(36), ForeignKey("disciplines.id"), nullable=True, index=True)
    kind = Column(String(30), nullable=False, default=ContentKind.RESUMO.value)
    title = Column(String(500), nullable=False)
    body = Column(Text, nullable=False)
    source_key = Column(Text, nullable=False)
    embedding = Column(EmbeddingColumn(EMBEDDING_DIMENSIONS), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (UniqueConstraint("source_key", name="uq_content_source_key"),)

    def __repr__(self) -> str:
        return f"<IndexedContent(id={self.id}, title={self.title}, kind={self.kind})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "discipline_id": self.discipline_id,
            "kind": self.kind,
            "title": self.title,
            "body": self.body,
            "source_key": self.source_key,
            "has_embedding": self.embedding is not None,
            "created_at": _iso(self.created_at),
        }


class ExamNotice(Base):
    """Edital enviado por um usuário."""

    __tablename__ = "exam_notices"

    id = Column(String(36), primary_key=True, default=_uuid)
    owner_id = Column(String(100), nullable=False, index=True)

    # Arquivo
    file_name = Column(String(500), nullable=False)
    size_bytes = Column(Integer, nullable=False, default=0)
    storage_key = Column(Text, nullable=False)
    content_hash = Column(String(32), nullable=False, index=True)  # md5
    raw_text = Column(Text, nullable=True)

    # Metadados extraídos
    banca = Column(String(200), nullable=True)
    orgao = Column(String(300), nullable=True)
    cargo = Column(String(300), nullable=True)
    notice_number = Column(String(100), nullable=True)
    publication_date = Column(Date, nullable=True)
    exam_date = Column(Date, nullable=True)
    salary = Column(Float, nullable=True)
    vacancies = Column(Integer, nullable=True)
    total_questions = Column(Integer, nullable=True)
    metadata_json = Column(JSON, nullable=True)

    status = Column(String(20), nullable=False, default=NoticeStatus.QUEUED.value, index=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<ExamNotice(id={self.id}, cargo={self.cargo}, status={self.status})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "file_name": self.file_name,
            "size_bytes": self.size_bytes,
            "storage_key": self.storage_key,
            "content_hash": self.content_hash,
            "banca": self.banca,
            "orgao": self.orgao,
            "cargo": self.cargo,
            "notice_number": self.notice_number,
            "publication_date": _iso(self.publication_date),
            "exam_date": _iso(self.exam_date),
            "salary": self.salary,
            "vacancies": self.vacancies,
            "total_questions": self.total_questions,
            "status": self.status,
            "error_message": self.error_message,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class ExamDiscipline(Base):
    """Disciplina listada em um edital, opcionalmente ligada ao banco."""

    __tablename__ = "exam_disciplines"

    id = Column(String(36), primary_key=True, default=_uuid)
    notice_id = Column(String(36), ForeignKey("exam_notices.id"), nullable=False, index=True)
    discipline_id = Column(String(36), ForeignKey("disciplines.id"), nullable=True)
    name = Column(String(300), nullable=False)
    weight = Column(Float, nullable=False, default=0.0)
    question_count = Column(Integer, nullable=False, default=0)
    topics = Column(JSON, nullable=False, default=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "notice_id": self.notice_id,
            "discipline_id": self.discipline_id,
            "name": self.name,
            "weight": self.weight,
            "question_count": self.question_count,
            "topics": list(self.topics or []),
        }


class ProcessingJob(Base):
    """Job de processamento de um edital."""

    __tablename__ = "processing_jobs"

    id = Column(String(36), primary_key=True, default=_uuid)
    notice_id = Column(String(36), ForeignKey("exam_notices.id"), nullable=False, index=True)
    stage = Column(String(200), nullable=False, default="Na fila")
    progress = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=JobStatus.QUEUED.value, index=True)
    error_message = Column(Text, nullable=True)
    error_trace = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<ProcessingJob(id={self.id}, notice_id={self.notice_id}, "
            f"status={self.status}, progress={self.progress})>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "notice_id": self.notice_id,
            "stage": self.stage,
            "progress": self.progress,
            "status": self.status,
            "error_message": self.error_message,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "completed_at": _iso(self.completed_at),
        }


class StudyPlan(Base):
    """Plano de estudos gerado a partir de um edital."""

    __tablename__ = "study_plans"

    id = Column(String(36), primary_key=True, default=_uuid)
    owner_id = Column(String(100), nullable=False, index=True)
    notice_id = Column(String(36), ForeignKey("exam_notices.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    hours_per_day = Column(Integer, nullable=False, default=4)
    weekdays = Column(JSON, nullable=False, default=list)
    distribution = Column(JSON, nullable=False, default=dict)
    success_probability = Column(Float, nullable=False, default=0.5)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "notice_id": self.notice_id,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "hours_per_day": self.hours_per_day,
            "weekdays": list(self.weekdays or []),
            "distribution": dict(self.distribution or {}),
            "success_probability": self.success_probability,
            "active": self.active,
            "created_at": _iso(self.created_at),
        }
