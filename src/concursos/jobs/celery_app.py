"""
Celery App - processamento assíncrono de editais.

FILAS:
- editais: processamento completo de um edital (texto → IA → plano)

COMO SUBIR O WORKER:

celery -A concursos.jobs.celery_app worker -Q editais -c 2 -n editais@%h
"""

from celery import Celery

from ..config import config

REDIS_URL = f"redis://{config.redis_host}:{config.redis_port}/0"

app = Celery(
    "concursos",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=["concursos.jobs.tasks"],
)

app.conf.task_routes = {
    "concursos.jobs.tasks.process_notice": {"queue": "editais"},
}

app.conf.update(
    # Timeouts (edital grande + LLM)
    task_time_limit=900,
    task_soft_time_limit=840,

    # Prefetch - 1 task por vez
    worker_prefetch_multiplier=1,

    # Sem reentrega automática: falha vira ERROR no edital
    task_acks_late=False,

    # Serialização
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Resultados expiram em 1 hora
    result_expires=3600,
)
