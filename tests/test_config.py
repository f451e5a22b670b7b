"""
Testes da configuração e da montagem dos serviços.
"""

import os

import pytest

from concursos.bootstrap import build_dispatcher
from concursos.config import Config, config


class TestConfig:
    """Testes para Config.from_env()."""

    def test_defaults(self, monkeypatch):
        for name in ("BANK_DIRS", "SEARCH_MIN_SIMILARITY", "JOB_DISPATCHER", "STUDY_HOURS_PER_DAY"):
            monkeypatch.delenv(name, raising=False)

        cfg = Config.from_env()

        assert cfg.bank_dirs == ["../ÁREA FISCAL"]
        assert cfg.search_min_similarity == 0.7
        assert cfg.job_dispatcher == "inprocess"
        assert cfg.hours_per_day == 4

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("BANK_DIRS", os.pathsep.join(["/dados/a", "/dados/b"]))
        monkeypatch.setenv("AI_CLEANUP", "true")
        monkeypatch.setenv("JOB_DISPATCHER", "Celery")
        monkeypatch.setenv("MAX_PDFS", "25")

        cfg = Config.from_env()

        assert cfg.bank_dirs == ["/dados/a", "/dados/b"]
        assert cfg.ai_cleanup is True
        assert cfg.job_dispatcher == "celery"
        assert cfg.max_pdfs == 25

    def test_invalid_dispatcher(self):
        with pytest.raises(ValueError):
            build_dispatcher(Config(job_dispatcher="kafka"))

    def test_celery_broker_from_config(self):
        from concursos.jobs.celery_app import app

        expected = f"redis://{config.redis_host}:{config.redis_port}/0"
        assert app.conf.broker_url == expected
        assert app.conf.result_backend == expected
