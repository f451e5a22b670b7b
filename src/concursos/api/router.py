"""
Router FastAPI de editais e do banco de conteúdo.

O upload retorna imediatamente; o processamento roda no worker e o
cliente acompanha por polling.

Endpoints:
    POST /editais                       - Envia edital (PDF) e enfileira processamento
    GET  /editais?owner_id=...          - Editais do usuário
    GET  /editais/{notice_id}/status    - Status, progresso e detalhes (quando ACTIVE)
    GET  /editais/{notice_id}/plano     - Plano de estudos ativo
    GET  /conteudos?disciplina=...      - Materiais de uma disciplina
    GET  /conteudos/search?q=...        - Busca semântica no banco
    GET  /indexer/status                - Total indexado por disciplina
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import BaseModel

from ..bootstrap import get_notice_service
from ..edital.service import (
    ContentItemView,
    DuplicateNoticeError,
    NoticeDispatchError,
    NoticeService,
    NoticeStatusView,
    NoticeSummaryView,
    StudyPlanView,
)
from ..registry.models import ContentKind
from ..remote.errors import ProviderError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Editais"])

MAX_UPLOAD_BYTES = 50 * 1024 * 1024


class NoticeSubmitResponse(BaseModel):
    """Resposta do upload (async)."""
    notice_id: str
    job_id: str
    status: str
    message: str = "Processamento iniciado em background"


class ContentSearchItem(BaseModel):
    id: str
    title: str
    body: str
    kind: str
    discipline_id: Optional[str] = None
    discipline_name: Optional[str] = None
    similarity: float


class DisciplineCount(BaseModel):
    slug: str
    name: str
    total: int


class IndexerStatusResponse(BaseModel):
    total: int
    target: int
    percent: Optional[float] = None
    by_discipline: List[DisciplineCount] = []


def get_service() -> NoticeService:
    return get_notice_service()


@router.post("/editais", response_model=NoticeSubmitResponse, status_code=202)
async def submit_notice(
    file: UploadFile = File(..., description="PDF do edital"),
    owner_id: str = Form(..., description="ID do usuário"),
    service: NoticeService = Depends(get_service),
):
    """
    Recebe o PDF, deduplica e enfileira o processamento.

    Registro no banco e publicação no broker rodam em thread para não
    bloquear o event loop.
    """
    file_name = file.filename or "edital.pdf"
    if not file_name.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Arquivo deve ser PDF")

    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Arquivo vazio")
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Arquivo excede 50MB")

    try:
        result = await asyncio.to_thread(
            service.submit, owner_id=owner_id, file_name=file_name, data=data
        )
    except DuplicateNoticeError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except NoticeDispatchError as e:
        logger.error(f"Edital {e.notice_id} não enfileirado: {e}")
        raise HTTPException(status_code=503, detail="Fila de processamento indisponível")

    return NoticeSubmitResponse(
        notice_id=result.notice_id,
        job_id=result.job_id,
        status=result.status,
    )


@router.get("/editais", response_model=List[NoticeSummaryView])
def list_notices(
    owner_id: str = Query(..., description="ID do usuário"),
    service: NoticeService = Depends(get_service),
):
    return service.list_notices(owner_id)


@router.get("/editais/{notice_id}/status", response_model=NoticeStatusView)
def notice_status(notice_id: str, service: NoticeService = Depends(get_service)):
    """Polling do processamento."""
    view = service.get_status(notice_id)
    if view is None:
        raise HTTPException(status_code=404, detail=f"Edital {notice_id} não encontrado")
    return view


@router.get("/editais/{notice_id}/plano", response_model=StudyPlanView)
def active_plan(notice_id: str, service: NoticeService = Depends(get_service)):
    plan = service.get_active_plan(notice_id)
    if plan is None:
        raise HTTPException(status_code=404, detail=f"Plano ativo não encontrado para {notice_id}")
    return plan


@router.get("/conteudos", response_model=List[ContentItemView])
def list_contents(
    disciplina: str = Query(..., description="Slug da disciplina"),
    tipo: Optional[ContentKind] = Query(None, description="RESUMO, QUESTAO ou MAPA_MENTAL"),
    service: NoticeService = Depends(get_service),
):
    """Materiais indexados de uma disciplina."""
    return service.list_contents(disciplina, tipo)


@router.get("/conteudos/search", response_model=List[ContentSearchItem])
def search_content(
    q: str = Query(..., min_length=2, description="Texto da busca"),
    service: NoticeService = Depends(get_service),
):
    """Busca semântica (similaridade > limiar configurado)."""
    try:
        results = service.search_content(q)
    except ProviderError as e:
        logger.error(f"Busca semântica falhou: {e.message}")
        raise HTTPException(status_code=503, detail="Serviço de embeddings indisponível")
    return [ContentSearchItem(**r.to_dict()) for r in results]


@router.get("/indexer/status", response_model=IndexerStatusResponse)
def indexer_status(service: NoticeService = Depends(get_service)):
    """Quanto do banco offline já foi indexado."""
    return IndexerStatusResponse(**service.indexer_status())
