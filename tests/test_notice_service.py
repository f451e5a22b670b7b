"""
Testes do serviço de editais, do despacho de jobs e da API HTTP.

Cobre:
- Upload: registro em QUEUED, job enfileirado, deduplicação por hash
- Falha ao enfileirar: edital ERROR e job FAILED com mensagem
- Status: detalhes só quando ACTIVE
- Listagem de editais, plano ativo e conteúdos por disciplina
- Busca semântica com limiar de similaridade
- InProcessDispatcher ponta a ponta e CeleryDispatcher (delay)
- Endpoints FastAPI (202, 400, 404, 409, 503)
"""

import base64
import json
from datetime import date
from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient

from concursos.api.router import get_service
from concursos.edital.dispatch import CeleryDispatcher, InProcessDispatcher, JobDispatcher, JobHandle
from concursos.edital.extractor import NoticeExtractor
from concursos.edital.processor import NoticeJob, NoticeProcessor
from concursos.edital.service import DuplicateNoticeError, NoticeDispatchError, NoticeService, content_hash
from concursos.main import app
from concursos.registry.models import ContentKind, JobStatus, NoticeStatus
from concursos.remote.embedder import to_vector_literal
from concursos.remote.errors import ProviderError, ProviderErrorKind

from conftest import FakeEmbedder, activate, build_pdf, fake_llm

NOTICE_LINES = [
    "EDITAL N 02/2026 - RECEITA ESTADUAL - AUDITOR FISCAL DA RECEITA",
    "Conhecimentos: Direito Tributario (40 questoes) e Auditoria (20 questoes).",
]

LLM_JSON = {
    "banca": "FCC",
    "cargo": "Auditor Fiscal",
    "totalQuestoes": 60,
    "disciplinas": [
        {"nome": "Direito Tributário", "numQuestoes": 40},
        {"nome": "Auditoria", "numQuestoes": 20},
    ],
}


@pytest.fixture
def pdf_bytes():
    return build_pdf(NOTICE_LINES)


@pytest.fixture
def dispatcher():
    dispatcher = Mock(spec=JobDispatcher)
    dispatcher.enqueue.side_effect = lambda job: JobHandle(job.job_id, job.notice_id, "mock")
    return dispatcher


@pytest.fixture
def service(notice_registry, content_store, dispatcher):
    return NoticeService(
        registry=notice_registry,
        content_store=content_store,
        dispatcher=dispatcher,
        embedder=FakeEmbedder(vector=[1.0, 0.0, 0.0]),
    )


class TestNoticeService:
    """Testes para NoticeService."""

    def test_submit_queues_job(self, service, dispatcher, notice_registry, pdf_bytes):
        result = service.submit("user-1", "edital.pdf", pdf_bytes)

        notice = notice_registry.get_notice(result.notice_id)
        assert notice.status == NoticeStatus.QUEUED.value
        assert notice.content_hash == content_hash(pdf_bytes)
        assert notice.storage_key.startswith("editais/user-1/")
        assert notice.storage_key.endswith("-edital.pdf")

        job = dispatcher.enqueue.call_args[0][0]
        assert isinstance(job, NoticeJob)
        assert job.document == pdf_bytes
        assert job.job_id == result.job_id

    def test_duplicate_active_notice_rejected(self, service, notice_registry, pdf_bytes):
        """Test: mesmo arquivo já ACTIVE para o usuário → DuplicateNoticeError."""
        first = service.submit("user-1", "edital.pdf", pdf_bytes)
        activate(notice_registry, first.notice_id)

        with pytest.raises(DuplicateNoticeError) as exc_info:
            service.submit("user-1", "copia.pdf", pdf_bytes)
        assert exc_info.value.notice_id == first.notice_id

    def test_same_file_other_owner_allowed(self, service, notice_registry, pdf_bytes):
        first = service.submit("user-1", "edital.pdf", pdf_bytes)
        activate(notice_registry, first.notice_id)

        assert service.submit("user-2", "edital.pdf", pdf_bytes).notice_id != first.notice_id

    def test_resubmit_while_not_active(self, service, pdf_bytes):
        first = service.submit("user-1", "edital.pdf", pdf_bytes)
        second = service.submit("user-1", "edital.pdf", pdf_bytes)
        assert first.notice_id != second.notice_id

    def test_status_while_queued(self, service, pdf_bytes):
        result = service.submit("user-1", "edital.pdf", pdf_bytes)

        view = service.get_status(result.notice_id)

        assert view.status == NoticeStatus.QUEUED.value
        assert view.progress == 0
        assert view.stage == "Na fila"
        assert view.notice is None

    def test_status_unknown(self, service):
        assert service.get_status("nao-existe") is None

    def test_enqueue_failure_marks_error(self, service, dispatcher, notice_registry, pdf_bytes):
        """Test: broker fora do ar → edital ERROR e job FAILED com mensagem."""
        dispatcher.enqueue.side_effect = ConnectionError("broker indisponível")

        with pytest.raises(NoticeDispatchError) as exc_info:
            service.submit("user-1", "edital.pdf", pdf_bytes)

        view = service.get_status(exc_info.value.notice_id)
        assert view.status == NoticeStatus.ERROR.value
        assert view.job_status == JobStatus.FAILED.value
        assert "broker indisponível" in view.error_message
        job = notice_registry.get_latest_job(exc_info.value.notice_id)
        assert "ConnectionError" in job.error_trace

    def test_list_notices(self, service, pdf_bytes):
        first = service.submit("user-1", "edital.pdf", pdf_bytes)
        service.submit("user-2", "outro.pdf", pdf_bytes)

        notices = service.list_notices("user-1")

        assert [n.id for n in notices] == [first.notice_id]
        assert notices[0].file_name == "edital.pdf"
        assert notices[0].status == NoticeStatus.QUEUED.value

    def test_active_plan(self, service, notice_registry, pdf_bytes):
        result = service.submit("user-1", "edital.pdf", pdf_bytes)
        assert service.get_active_plan(result.notice_id) is None

        notice_registry.save_study_plan(
            owner_id="user-1",
            notice_id=result.notice_id,
            start_date=date(2026, 1, 1),
            end_date=date(2026, 3, 1),
            hours_per_day=4,
            weekdays=[1, 2, 3, 4, 5],
            distribution={"Auditoria": {"horas_total": 40}},
            success_probability=0.5,
        )

        plan = service.get_active_plan(result.notice_id)
        assert plan.end_date == date(2026, 3, 1)
        assert plan.distribution == {"Auditoria": {"horas_total": 40}}

    def test_list_contents(self, service, content_store):
        discipline_id = content_store.ensure_discipline("auditoria", "Auditoria")
        content_store.insert_content("/banco/a.pdf", "a", "texto", discipline_id)
        content_store.insert_content("/banco/q.pdf", "q", "texto", discipline_id, kind=ContentKind.QUESTAO)

        assert [c.title for c in service.list_contents("auditoria")] == ["a", "q"]
        assert [c.title for c in service.list_contents("auditoria", ContentKind.QUESTAO)] == ["q"]

    def test_search_filters_by_similarity(self, service, content_store):
        content_store.insert_content("/banco/perto.pdf", "perto", "t", embedding=to_vector_literal([1.0, 0.1, 0.0]))
        content_store.insert_content("/banco/longe.pdf", "longe", "t", embedding=to_vector_literal([0.0, 1.0, 0.0]))

        results = service.search_content("lançamento tributário")

        assert [r.title for r in results] == ["perto"]

    def test_indexer_status(self, service, content_store):
        discipline_id = content_store.ensure_discipline("auditoria", "Auditoria")
        content_store.insert_content("/banco/a.pdf", "a", "t", discipline_id)

        status = service.indexer_status()

        assert status["total"] == 1
        assert status["target"] == 2620
        assert status["by_discipline"] == [{"slug": "auditoria", "name": "Auditoria", "total": 1}]


class TestDispatchers:
    """Testes dos despachantes."""

    def test_in_process_end_to_end(self, notice_registry, content_store, pdf_bytes):
        """Test: upload → worker em thread → ACTIVE com disciplinas."""
        content_store.ensure_discipline("auditoria", "Auditoria")
        processor = NoticeProcessor(
            registry=notice_registry,
            content_store=content_store,
            notice_extractor=NoticeExtractor(fake_llm(json.dumps(LLM_JSON))),
        )
        dispatcher = InProcessDispatcher(processor)
        service = NoticeService(notice_registry, content_store, dispatcher)

        result = service.submit("user-1", "edital.pdf", pdf_bytes)
        dispatcher.wait_idle()
        dispatcher.stop()

        view = service.get_status(result.notice_id)
        assert view.status == NoticeStatus.ACTIVE.value
        assert view.progress == 100
        assert view.notice.cargo == "Auditor Fiscal"
        by_name = {d.nome: d for d in view.notice.disciplinas}
        assert by_name["Auditoria"].discipline_id is not None
        assert by_name["Direito Tributário"].peso == pytest.approx(40 / 60)

    def test_celery_dispatcher_publishes_task(self):
        job = NoticeJob(notice_id="n-1", job_id="j-1", owner_id="user-1", document=b"%PDF-1.4 dados")

        with patch("concursos.jobs.tasks.process_notice") as task:
            task.delay.return_value = Mock(id="task-123")
            handle = CeleryDispatcher().enqueue(job)

        kwargs = task.delay.call_args.kwargs
        assert base64.b64decode(kwargs["document_b64"]) == b"%PDF-1.4 dados"
        assert kwargs["notice_id"] == "n-1"
        assert handle.task_id == "task-123"
        assert handle.backend == "celery"

    def test_celery_task_runs_processor(self):
        from concursos.jobs.tasks import process_notice

        processor = Mock()
        processor.process.return_value = True
        with patch("concursos.jobs.tasks.get_processor", return_value=processor):
            result = process_notice(
                notice_id="n-1",
                job_id="j-1",
                owner_id="user-1",
                document_b64=base64.b64encode(b"pdf").decode("ascii"),
            )

        job = processor.process.call_args[0][0]
        assert job.document == b"pdf"
        assert result == {"notice_id": "n-1", "job_id": "j-1", "success": True}


class TestNoticeApi:
    """Testes dos endpoints HTTP."""

    @pytest.fixture
    def client(self, service):
        app.dependency_overrides[get_service] = lambda: service
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_upload_accepted(self, client, pdf_bytes):
        response = client.post(
            "/editais",
            files={"file": ("edital.pdf", pdf_bytes, "application/pdf")},
            data={"owner_id": "user-1"},
        )

        assert response.status_code == 202
        body = response.json()
        assert body["status"] == "QUEUED"
        assert body["notice_id"] and body["job_id"]

    def test_upload_rejects_non_pdf(self, client):
        response = client.post(
            "/editais",
            files={"file": ("edital.docx", b"conteudo", "application/octet-stream")},
            data={"owner_id": "user-1"},
        )
        assert response.status_code == 400

    def test_upload_rejects_empty_file(self, client):
        response = client.post(
            "/editais",
            files={"file": ("edital.pdf", b"", "application/pdf")},
            data={"owner_id": "user-1"},
        )
        assert response.status_code == 400

    def test_duplicate_upload_conflict(self, client, notice_registry, pdf_bytes):
        files = {"file": ("edital.pdf", pdf_bytes, "application/pdf")}
        first = client.post("/editais", files=files, data={"owner_id": "user-1"}).json()
        activate(notice_registry, first["notice_id"])

        response = client.post("/editais", files=files, data={"owner_id": "user-1"})
        assert response.status_code == 409

    def test_status_endpoint(self, client, pdf_bytes):
        created = client.post(
            "/editais",
            files={"file": ("edital.pdf", pdf_bytes, "application/pdf")},
            data={"owner_id": "user-1"},
        ).json()

        response = client.get(f"/editais/{created['notice_id']}/status")

        assert response.status_code == 200
        assert response.json()["status"] == "QUEUED"
        assert response.json()["notice"] is None

    def test_status_not_found(self, client):
        assert client.get("/editais/nao-existe/status").status_code == 404

    def test_upload_dispatch_failure(self, client, dispatcher, pdf_bytes):
        dispatcher.enqueue.side_effect = ConnectionError("broker indisponível")

        response = client.post(
            "/editais",
            files={"file": ("edital.pdf", pdf_bytes, "application/pdf")},
            data={"owner_id": "user-1"},
        )

        assert response.status_code == 503

    def test_list_notices(self, client, pdf_bytes):
        created = client.post(
            "/editais",
            files={"file": ("edital.pdf", pdf_bytes, "application/pdf")},
            data={"owner_id": "user-1"},
        ).json()

        response = client.get("/editais", params={"owner_id": "user-1"})

        assert response.status_code == 200
        assert [n["id"] for n in response.json()] == [created["notice_id"]]

    def test_plan_not_found(self, client):
        assert client.get("/editais/nao-existe/plano").status_code == 404

    def test_list_contents(self, client, content_store):
        discipline_id = content_store.ensure_discipline("auditoria", "Auditoria")
        content_store.insert_content("/banco/q.pdf", "q", "texto", discipline_id, kind=ContentKind.QUESTAO)

        response = client.get("/conteudos", params={"disciplina": "auditoria", "tipo": "QUESTAO"})

        assert response.status_code == 200
        assert [c["title"] for c in response.json()] == ["q"]

    def test_search(self, client, content_store):
        content_store.insert_content("/banco/perto.pdf", "perto", "texto", embedding=to_vector_literal([1.0, 0.0, 0.0]))

        response = client.get("/conteudos/search", params={"q": "crédito tributário"})

        assert response.status_code == 200
        assert [item["title"] for item in response.json()] == ["perto"]
        assert response.json()[0]["similarity"] == 1.0

    def test_search_provider_unavailable(self, client, service):
        service.embedder = Mock()
        service.embedder.embed.side_effect = ProviderError(ProviderErrorKind.TRANSIENT, "fora do ar")

        assert client.get("/conteudos/search", params={"q": "crédito"}).status_code == 503

    def test_indexer_status(self, client):
        response = client.get("/indexer/status")
        assert response.status_code == 200
        assert response.json()["total"] == 0
        assert response.json()["percent"] == 0.0

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"
