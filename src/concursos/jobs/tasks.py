"""
Celery tasks de editais.

O documento chega em base64 no payload JSON; o worker monta o
NoticeProcessor uma vez por processo a partir das variáveis de ambiente.
"""

import base64
import logging

from ..bootstrap import get_processor
from ..edital.processor import NoticeJob
from .celery_app import app

logger = logging.getLogger(__name__)


@app.task(name="concursos.jobs.tasks.process_notice", bind=True, max_retries=0)
def process_notice(self, notice_id: str, job_id: str, owner_id: str, document_b64: str) -> dict:
    """
    Processa um edital.

    Returns:
        {"notice_id", "job_id", "success"}
    """
    logger.info(f"[{self.request.id}] Processando edital {notice_id} (job {job_id})")
    job = NoticeJob(
        notice_id=notice_id,
        job_id=job_id,
        owner_id=owner_id,
        document=base64.b64decode(document_b64),
    )
    success = get_processor().process(job)
    return {"notice_id": notice_id, "job_id": job_id, "success": success}
