"""
Testes do processamento de editais (máquina de estados + job).

Cobre:
- Caminho feliz até ACTIVE com job em 100%
- Resposta do LLM sem JSON → edital ERROR e job FAILED com mensagem
- PDF sem texto e erro do provedor como falha de estágio
- Progresso monotônico entre checkpoints
- Lease: segundo processamento do mesmo edital é recusado
"""

import json
from datetime import date
from unittest.mock import patch

import pytest

from concursos.edital.extractor import NoticeExtractor
from concursos.edital.processor import NoticeJob, NoticeProcessor
from concursos.registry.models import JobStatus, NoticeStatus
from concursos.registry.notice_registry import REJECTED_STAGE
from concursos.remote.errors import ProviderError, ProviderErrorKind

from conftest import build_pdf, fake_llm

TODAY = date(2026, 1, 1)

NOTICE_LINES = [
    "EDITAL N 01/2026 - SECRETARIA DA FAZENDA - AUDITOR FISCAL",
    "A prova objetiva sera aplicada em 2 de marco de 2026 e contera 50 questoes.",
    "Conhecimentos: Direito Tributario (30 questoes) e Fisica Aplicada (20 questoes).",
]

LLM_JSON = {
    "banca": "FGV",
    "orgao": "Secretaria da Fazenda",
    "cargo": "Auditor Fiscal",
    "dataProva": "2026-03-02",
    "totalQuestoes": 50,
    "disciplinas": [
        {"nome": "Direito Tributário", "peso": 0.6, "numQuestoes": 30, "topicos": ["Crédito tributário"]},
        {"nome": "Física Aplicada", "peso": 0.4, "numQuestoes": 20},
    ],
}


@pytest.fixture
def notice_pdf():
    return build_pdf(NOTICE_LINES)


@pytest.fixture
def make_processor(notice_registry, content_store):
    def _make(llm_content):
        llm = fake_llm(llm_content)
        processor = NoticeProcessor(
            registry=notice_registry,
            content_store=content_store,
            notice_extractor=NoticeExtractor(llm),
            today=lambda: TODAY,
        )
        return processor, llm

    return _make


@pytest.fixture
def queued_job(notice_registry, notice_pdf):
    def _queue(document=None):
        notice = notice_registry.create_notice(
            owner_id="user-1",
            file_name="edital.pdf",
            size_bytes=len(notice_pdf),
            storage_key="editais/user-1/1-edital.pdf",
            content_hash="hash",
        )
        job = notice_registry.create_job(notice.id)
        return NoticeJob(
            notice_id=notice.id,
            job_id=job.id,
            owner_id="user-1",
            document=notice_pdf if document is None else document,
        )

    return _queue


class TestNoticeProcessorSuccess:
    """Testes do caminho feliz."""

    def test_reaches_active(self, make_processor, queued_job, notice_registry, content_store):
        tributario_id = content_store.ensure_discipline("direito-tributario", "Direito Tributário")
        processor, _ = make_processor(json.dumps(LLM_JSON))
        job = queued_job()

        assert processor.process(job) is True

        notice = notice_registry.get_notice(job.notice_id)
        assert notice.status == NoticeStatus.ACTIVE.value
        assert notice.banca == "FGV"
        assert notice.exam_date == date(2026, 3, 2)
        assert "SECRETARIA DA FAZENDA" in notice.raw_text

        stored_job = notice_registry.get_job(job.job_id)
        assert stored_job.status == JobStatus.DONE.value
        assert stored_job.progress == 100
        assert stored_job.stage == "Concluído"

        disciplines = {d.name: d for d in notice_registry.list_exam_disciplines(job.notice_id)}
        assert disciplines["Direito Tributário"].discipline_id == tributario_id
        assert disciplines["Direito Tributário"].topics == ["Crédito tributário"]
        assert disciplines["Física Aplicada"].discipline_id is None

    def test_study_plan_saved(self, make_processor, queued_job, notice_registry):
        processor, _ = make_processor(json.dumps(LLM_JSON))
        job = queued_job()
        processor.process(job)

        plan = notice_registry.get_active_plan(job.notice_id)
        assert plan.start_date == TODAY
        assert plan.end_date == date(2026, 3, 2)
        assert plan.distribution["Direito Tributário"]["horas_total"] == 144
        assert plan.distribution["Física Aplicada"]["horas_total"] == 96
        assert plan.weekdays == [1, 2, 3, 4, 5]

    def test_progress_is_monotonic(self, make_processor, queued_job, notice_registry):
        """Test: checkpoints 15 → 35 → 60 → 80 em ordem."""
        processor, _ = make_processor(json.dumps(LLM_JSON))
        job = queued_job()

        with patch.object(notice_registry, "update_job", wraps=notice_registry.update_job) as spy:
            processor.process(job)

        progress = [c.args[2] for c in spy.call_args_list]
        assert progress == [15, 35, 60, 80]
        assert notice_registry.get_job(job.job_id).progress == 100


class TestNoticeProcessorFailures:
    """Testes das falhas de estágio."""

    def test_llm_without_json_marks_error(self, make_processor, queued_job, notice_registry):
        """Test: resposta sem JSON → edital ERROR, job FAILED, mensagem não vazia."""
        processor, _ = make_processor("Desculpe, não consegui analisar o edital.")
        job = queued_job()

        assert processor.process(job) is False

        notice = notice_registry.get_notice(job.notice_id)
        assert notice.status == NoticeStatus.ERROR.value
        assert notice.error_message

        stored_job = notice_registry.get_job(job.job_id)
        assert stored_job.status == JobStatus.FAILED.value
        assert stored_job.error_message
        assert "NoticeExtractionError" in stored_job.error_trace
        assert stored_job.completed_at is not None

    def test_pdf_without_text(self, make_processor, queued_job, notice_registry):
        processor, llm = make_processor(json.dumps(LLM_JSON))
        job = queued_job(document=build_pdf([]))

        assert processor.process(job) is False
        assert notice_registry.get_notice(job.notice_id).status == NoticeStatus.ERROR.value
        llm.chat.assert_not_called()

    def test_corrupt_pdf(self, make_processor, queued_job, notice_registry):
        processor, _ = make_processor(json.dumps(LLM_JSON))
        job = queued_job(document=b"isto nao e um pdf")

        assert processor.process(job) is False
        assert notice_registry.get_job(job.job_id).status == JobStatus.FAILED.value

    def test_provider_error(self, make_processor, queued_job, notice_registry):
        processor, llm = make_processor("")
        llm.chat.side_effect = ProviderError(ProviderErrorKind.QUOTA_EXCEEDED, "sem créditos", status_code=402)
        job = queued_job()

        assert processor.process(job) is False
        assert notice_registry.get_notice(job.notice_id).error_message == "sem créditos"

    def test_second_run_is_rejected(self, make_processor, queued_job, notice_registry):
        """Test: o mesmo edital não é processado duas vezes."""
        processor, llm = make_processor(json.dumps(LLM_JSON))
        job = queued_job()
        processor.process(job)

        retry = NoticeJob(
            notice_id=job.notice_id,
            job_id=notice_registry.create_job(job.notice_id).id,
            owner_id=job.owner_id,
            document=job.document,
        )
        assert processor.process(retry) is False

        assert notice_registry.get_notice(job.notice_id).status == NoticeStatus.ACTIVE.value
        rejected = notice_registry.get_job(retry.job_id)
        assert rejected.status == JobStatus.FAILED.value
        assert rejected.stage == REJECTED_STAGE
        assert rejected.completed_at is not None
        assert llm.chat.call_count == 1

    def test_rejected_job_does_not_hide_finished_job(self, make_processor, queued_job, notice_registry):
        """Test: o status continua mostrando o job que levou o edital a ACTIVE."""
        processor, _ = make_processor(json.dumps(LLM_JSON))
        job = queued_job()
        processor.process(job)

        retry_id = notice_registry.create_job(job.notice_id).id
        processor.process(NoticeJob(job.notice_id, retry_id, job.owner_id, job.document))

        latest = notice_registry.get_latest_job(job.notice_id)
        assert latest.id == job.job_id
        assert latest.status == JobStatus.DONE.value
        assert latest.progress == 100
