"""
Montagem dos serviços a partir da configuração (singletons por processo).

Usado pela API (FastAPI), pelos workers Celery e pela CLI.
"""

import logging
import threading
from typing import Optional

from sqlalchemy.engine import Engine

from .config import Config, config as default_config
from .edital.dispatch import CeleryDispatcher, InProcessDispatcher, JobDispatcher
from .edital.extractor import NoticeExtractor
from .edital.processor import NoticeProcessor
from .edital.service import NoticeService
from .registry.content_store import ContentStore
from .registry.database import create_db_engine
from .registry.notice_registry import NoticeRegistry
from .remote.embedder import get_remote_embedder
from .remote.llm import RemoteLLM, RemoteLLMConfig

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_engine: Optional[Engine] = None
_processor: Optional[NoticeProcessor] = None
_service: Optional[NoticeService] = None


def get_engine(cfg: Optional[Config] = None) -> Engine:
    """Engine compartilhado (cria o schema na primeira chamada)."""
    global _engine
    cfg = cfg or default_config
    with _lock:
        if _engine is None:
            _engine = create_db_engine(cfg.database_url, echo=cfg.database_echo)
    return _engine


def build_processor(cfg: Optional[Config] = None) -> NoticeProcessor:
    cfg = cfg or default_config
    engine = get_engine(cfg)
    return NoticeProcessor(
        registry=NoticeRegistry(engine=engine),
        content_store=ContentStore(engine=engine),
        notice_extractor=NoticeExtractor(
            RemoteLLM(RemoteLLMConfig.for_extraction()),
            max_input_chars=cfg.notice_text_chars,
        ),
        hours_per_day=cfg.hours_per_day,
        default_window_days=cfg.default_window_days,
        min_text_chars=cfg.min_text_chars,
    )


def get_processor(cfg: Optional[Config] = None) -> NoticeProcessor:
    global _processor
    if _processor is None:
        _processor = build_processor(cfg)
    return _processor


def build_dispatcher(cfg: Optional[Config] = None) -> JobDispatcher:
    cfg = cfg or default_config
    if cfg.job_dispatcher == "celery":
        logger.info("Despacho de editais: Celery")
        return CeleryDispatcher()
    if cfg.job_dispatcher != "inprocess":
        raise ValueError(f"JOB_DISPATCHER inválido: {cfg.job_dispatcher}")
    logger.info("Despacho de editais: worker em thread (in-process)")
    return InProcessDispatcher(get_processor(cfg))


def get_notice_service(cfg: Optional[Config] = None) -> NoticeService:
    """Retorna instância singleton do NoticeService."""
    global _service
    cfg = cfg or default_config
    if _service is None:
        engine = get_engine(cfg)
        _service = NoticeService(
            registry=NoticeRegistry(engine=engine),
            content_store=ContentStore(engine=engine),
            dispatcher=build_dispatcher(cfg),
            embedder=get_remote_embedder(),
            search_limit=cfg.search_limit,
            min_similarity=cfg.search_min_similarity,
            indexer_target=cfg.indexer_target,
        )
    return _service
