"""
Despacho de jobs de edital.

O upload retorna assim que o job é enfileirado; o processamento acontece
fora da requisição:

- InProcessDispatcher: fila em memória + thread worker (desenvolvimento,
  instância única)
- CeleryDispatcher: publica a task no broker Redis (produção)
"""

import base64
import logging
import queue
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .processor import NoticeJob, NoticeProcessor

logger = logging.getLogger(__name__)


@dataclass
class JobHandle:
    """Referência devolvida ao enfileirar."""

    job_id: str
    notice_id: str
    backend: str
    task_id: Optional[str] = None


class JobDispatcher(ABC):
    """Interface de despacho."""

    @abstractmethod
    def enqueue(self, job: NoticeJob) -> JobHandle:
        """Agenda o job e retorna imediatamente."""


class InProcessDispatcher(JobDispatcher):
    """Worker em thread daemon consumindo uma fila em memória."""

    def __init__(self, processor: NoticeProcessor):
        self.processor = processor
        self._queue: "queue.Queue[Optional[NoticeJob]]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def _ensure_started(self):
        with self._lock:
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(
                    target=self._worker,
                    name="notice-worker",
                    daemon=True,
                )
                self._thread.start()

    def _worker(self):
        while True:
            job = self._queue.get()
            try:
                if job is None:
                    return
                self.processor.process(job)
            except Exception:
                logger.exception(f"Worker de editais: falha inesperada no job {job.job_id}")
            finally:
                self._queue.task_done()

    def enqueue(self, job: NoticeJob) -> JobHandle:
        self._ensure_started()
        self._queue.put(job)
        logger.info(f"Job {job.job_id} enfileirado (in-process)")
        return JobHandle(job_id=job.job_id, notice_id=job.notice_id, backend="inprocess")

    def wait_idle(self):
        """Bloqueia até a fila esvaziar."""
        self._queue.join()

    def stop(self):
        with self._lock:
            thread = self._thread
        if thread is not None and thread.is_alive():
            self._queue.put(None)
            thread.join()


class CeleryDispatcher(JobDispatcher):
    """Publica o job como task Celery (documento em base64 no payload JSON)."""

    def enqueue(self, job: NoticeJob) -> JobHandle:
        from ..jobs.tasks import process_notice

        result = process_notice.delay(
            notice_id=job.notice_id,
            job_id=job.job_id,
            owner_id=job.owner_id,
            document_b64=base64.b64encode(job.document).decode("ascii"),
        )
        logger.info(f"Job {job.job_id} publicado no Celery (task {result.id})")
        return JobHandle(
            job_id=job.job_id,
            notice_id=job.notice_id,
            backend="celery",
            task_id=result.id,
        )
