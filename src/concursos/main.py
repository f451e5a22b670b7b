"""
Concursos API - upload de editais, status de processamento e busca no banco.

Endpoints:
    POST /editais                     - Envia edital
    GET  /editais/{id}/status         - Polling do processamento
    GET  /conteudos/search            - Busca semântica
    GET  /indexer/status              - Status do indexador
    GET  /health                      - Health check

Uso:
    uvicorn concursos.main:app --host 0.0.0.0 --port 8000
"""

import logging

from fastapi import FastAPI

from . import __version__
from .api import notices_router
from .config import config

# Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Concursos API",
    description="Indexação do banco de materiais e processamento de editais",
    version=__version__,
)

app.include_router(notices_router)


@app.get("/health")
def health():
    """Health check."""
    return {"status": "ok", "version": __version__, "dispatcher": config.job_dispatcher}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.host, port=config.port)
