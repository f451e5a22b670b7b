"""
Processamento de editais.

Fluxo:
1. NoticeService.submit (dedup md5, edital + job em QUEUED, despacho)
2. NoticeProcessor (texto → IA → mapeamento de disciplinas → plano)
3. NoticeService.get_status (progresso do job, detalhes quando ACTIVE)
4. NoticeService.list_notices / get_active_plan / list_contents (consultas)
"""

from .models import NoticeDisciplineData, NoticeMetadata
from .extractor import NoticeExtractionError, NoticeExtractor, parse_notice_json
from .planner import (
    DisciplineAllocation,
    StudyPlanDraft,
    allocate_hours,
    build_study_plan,
    normalize_weights,
)
from .processor import NoticeJob, NoticeProcessingError, NoticeProcessor
from .dispatch import CeleryDispatcher, InProcessDispatcher, JobDispatcher, JobHandle
from .service import (
    DuplicateNoticeError,
    NoticeDispatchError,
    NoticeService,
    NoticeStatusView,
    SubmitResult,
    content_hash,
)

__all__ = [
    # Modelos
    "NoticeDisciplineData",
    "NoticeMetadata",
    # Extração
    "NoticeExtractionError",
    "NoticeExtractor",
    "parse_notice_json",
    # Plano
    "DisciplineAllocation",
    "StudyPlanDraft",
    "allocate_hours",
    "build_study_plan",
    "normalize_weights",
    # Processamento
    "NoticeJob",
    "NoticeProcessingError",
    "NoticeProcessor",
    # Despacho
    "CeleryDispatcher",
    "InProcessDispatcher",
    "JobDispatcher",
    "JobHandle",
    # Serviço
    "DuplicateNoticeError",
    "NoticeDispatchError",
    "NoticeService",
    "NoticeStatusView",
    "SubmitResult",
    "content_hash",
]
