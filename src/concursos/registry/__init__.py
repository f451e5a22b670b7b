"""
Persistência: disciplinas, conteúdo indexado, editais, jobs e planos.
"""

from .models import (
    Base,
    ContentKind,
    Discipline,
    ExamDiscipline,
    ExamNotice,
    IndexedContent,
    JobStatus,
    NoticeStatus,
    ProcessingJob,
    StudyPlan,
)
from .database import create_db_engine, insert_ignore
from .content_store import ContentStore, SimilarContent
from .notice_registry import NoticeRegistry

__all__ = [
    "Base",
    "ContentKind",
    "Discipline",
    "ExamDiscipline",
    "ExamNotice",
    "IndexedContent",
    "JobStatus",
    "NoticeStatus",
    "ProcessingJob",
    "StudyPlan",
    "create_db_engine",
    "insert_ignore",
    "ContentStore",
    "SimilarContent",
    "NoticeRegistry",
]
